from decimal import Decimal


class MockData:
    """Mock data for testing"""
    @staticmethod
    def get_test_products():
        return [
            {'id': 1, 'name': 'Laptop', 'category': 'electronics', 'price': Decimal('999.99'), 'stock_quantity': 50},
            {'id': 2, 'name': 'Mouse', 'category': 'Electronics', 'price': Decimal('29.99'), 'stock_quantity': 2},
            {'id': 3, 'name': 'Keyboard', 'category': 'electronics', 'price': Decimal('79.99'), 'stock_quantity': 12},
            {'id': 4, 'name': 'Office Chair', 'category': 'furniture', 'price': Decimal('299.99'), 'stock_quantity': 1},
            {'id': 5, 'name': 'Desk', 'category': 'furniture', 'price': Decimal('499.99'), 'stock_quantity': 100},
        ]
