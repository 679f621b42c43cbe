"""
categories.py

Reference data for expense categorization.  ``CATEGORIES`` is the fixed
list of Indian spending categories (with Hindi display names) that the
database is seeded with and that the language model must choose from.
``CATEGORY_KEYWORDS`` drives the keyword fallback used when the model is
unavailable; order matters, the first keyword found in the entry wins.
"""

DEFAULT_CATEGORY = "Miscellaneous"

CATEGORIES = [
    ("Food & Dining", "खाना और भोजन"),
    ("Transportation", "यातायात"),
    ("Bills & Utilities", "बिल और उपयोगिताएँ"),
    ("Shopping", "खरीदारी"),
    ("Entertainment", "मनोरंजन"),
    ("Healthcare", "स्वास्थ्य सेवा"),
    ("Education", "शिक्षा"),
    ("Personal Care", "व्यक्तिगत देखभाल"),
    ("Travel & Vacation", "यात्रा और छुट्टी"),
    ("Family & Kids", "परिवार और बच्चे"),
    ("Gifts & Donations", "उपहार और दान"),
    ("Business", "व्यापार"),
    ("Investment", "निवेश"),
    ("EMI & Loans", "ईएमआई और ऋण"),
    (DEFAULT_CATEGORY, "विविध"),
]

CATEGORY_NAMES = tuple(name for name, _ in CATEGORIES)

INCOME_KEYWORDS = ["salary", "income", "payment received", "earned", "bonus"]

CATEGORY_KEYWORDS = [
    ("grocery", "Food & Dining"),
    ("groceries", "Food & Dining"),
    ("food", "Food & Dining"),
    ("restaurant", "Food & Dining"),
    ("taxi", "Transportation"),
    ("auto", "Transportation"),
    ("petrol", "Transportation"),
    ("fuel", "Transportation"),
    ("bill", "Bills & Utilities"),
    ("electricity", "Bills & Utilities"),
    ("mobile", "Bills & Utilities"),
    ("shopping", "Shopping"),
    ("clothes", "Shopping"),
    ("movie", "Entertainment"),
    ("entertainment", "Entertainment"),
    ("doctor", "Healthcare"),
    ("medicine", "Healthcare"),
    ("school", "Education"),
    ("travel", "Travel & Vacation"),
]
