"""
Seed rows for the demo account.

Rows are in wire form (camelCase keys, ISO date strings), exactly as the
router would store them after a POST.
"""

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo123"

FIXTURES = {
    "users": [
        {
            "id": 1,
            "email": DEMO_EMAIL,
            "password": DEMO_PASSWORD,
            "firstName": "Demo",
            "lastName": "User",
            "createdAt": "2024-01-01T00:00:00",
        },
    ],
    "expenses": [
        {
            "id": 1,
            "userId": 1,
            "amount": "1200",
            "category": "Housing",
            "description": "Monthly rent",
            "date": "2024-01-05",
            "isRecurring": True,
            "recurringFrequency": "monthly",
        },
        {
            "id": 2,
            "userId": 1,
            "amount": "150",
            "category": "Food",
            "description": "Grocery shopping",
            "date": "2024-01-10",
            "isRecurring": False,
        },
        {
            "id": 3,
            "userId": 1,
            "amount": "80",
            "category": "Transportation",
            "description": "Gas and parking",
            "date": "2024-01-15",
            "isRecurring": False,
        },
        {
            "id": 4,
            "userId": 1,
            "amount": "200",
            "category": "Food",
            "description": "Restaurant meals",
            "date": "2024-01-20",
            "isRecurring": False,
        },
        {
            "id": 5,
            "userId": 1,
            "amount": "100",
            "category": "Entertainment",
            "description": "Movie tickets and streaming",
            "date": "2024-01-25",
            "isRecurring": False,
        },
    ],
    "incomes": [
        {
            "id": 1,
            "userId": 1,
            "amount": "5000",
            "source": "Salary",
            "description": "Monthly salary",
            "date": "2024-01-01",
        },
        {
            "id": 2,
            "userId": 1,
            "amount": "500",
            "source": "Freelance",
            "description": "Web development project",
            "date": "2024-01-15",
        },
    ],
    "budgets": [
        {
            "id": 1,
            "userId": 1,
            "month": 1,
            "year": 2024,
            "totalIncome": "5500",
            "categories": [
                {"category": "Housing", "limit": "1200"},
                {"category": "Food", "limit": "400"},
                {"category": "Transportation", "limit": "200"},
                {"category": "Entertainment", "limit": "150"},
                {"category": "Utilities", "limit": "150"},
                {"category": "Savings", "limit": "3000"},
            ],
            "createdAt": "2024-01-01T00:00:00",
        },
    ],
    "goals": [
        {
            "id": 1,
            "userId": 1,
            "title": "Emergency Fund",
            "description": "Build 6 months of expenses",
            "targetAmount": "10000",
            "currentAmount": "2500",
            "targetDate": "2024-12-31",
            "createdAt": "2024-01-01T00:00:00",
        },
        {
            "id": 2,
            "userId": 1,
            "title": "Vacation to Europe",
            "description": "Save for summer vacation",
            "targetAmount": "5000",
            "currentAmount": "1200",
            "targetDate": "2024-06-30",
            "createdAt": "2024-01-01T00:00:00",
        },
    ],
}
