"""Built-in rule table and validator vocabulary used when no configuration file is provided.

Categories follow the MCB (Mauritius Commercial Bank) business statement grouping. Rule order is
priority order: the first listed keyword wins an exact match and breaks fuzzy-match ties.
"""

CSG_PRGF = "CSG/PRGF"
PRIME_SCHEME = "PRIME (SCHEME)"
CONSULTANCY_FEE = "CONSULTANCY FEE"
SALARY = "SALARY"
PURCHASE_PAYMENT_EXPENSE = "PURCHASE/PAYMENT/EXPENSE"
SALES = "SALES"
CASH_WITHDRAWAL = "CASH WITHDRAWAL"
CASH_DEPOSIT = "CASH DEPOSIT"
BANK_CHARGES = "BANK CHARGES"
MISCELLANEOUS = "MISCELLANEOUS"

CATEGORIES = (
    CSG_PRGF,
    PRIME_SCHEME,
    CONSULTANCY_FEE,
    SALARY,
    PURCHASE_PAYMENT_EXPENSE,
    SALES,
    CASH_WITHDRAWAL,
    CASH_DEPOSIT,
    BANK_CHARGES,
    MISCELLANEOUS,
)

DEFAULT_RULES: list[tuple[str, str]] = [
    ("CSG", CSG_PRGF),
    ("PRGF", CSG_PRGF),
    ("Contribution Sociale Generalisee", CSG_PRGF),
    ("Prime", PRIME_SCHEME),
    ("Wage Assistance Scheme", PRIME_SCHEME),
    ("Consultancy", CONSULTANCY_FEE),
    ("Consulting Fee", CONSULTANCY_FEE),
    ("Professional Fee", CONSULTANCY_FEE),
    ("Salary", SALARY),
    ("Payroll", SALARY),
    ("Wages", SALARY),
    ("ATM Withdrawal", CASH_WITHDRAWAL),
    ("Cash Withdrawal", CASH_WITHDRAWAL),
    ("Cash Cheque", CASH_WITHDRAWAL),
    ("Cash Deposit", CASH_DEPOSIT),
    ("Cheque Deposit", CASH_DEPOSIT),
    ("Banking Subs Fee", BANK_CHARGES),
    ("Subs Fee", BANK_CHARGES),
    ("Service Fee", BANK_CHARGES),
    ("Bank Charges", BANK_CHARGES),
    ("Commission", BANK_CHARGES),
    ("SMS Banking Fee", BANK_CHARGES),
    ("Card Fee", BANK_CHARGES),
    ("Stamp Duty", BANK_CHARGES),
    ("POS Settlement", SALES),
    ("Merchant Settlement", SALES),
    ("Sales", SALES),
    ("JuicePro Transfer", PURCHASE_PAYMENT_EXPENSE),
    ("Juice Payment", PURCHASE_PAYMENT_EXPENSE),
    ("Bill Payment", PURCHASE_PAYMENT_EXPENSE),
    ("Standing Order", PURCHASE_PAYMENT_EXPENSE),
    ("Direct Debit", PURCHASE_PAYMENT_EXPENSE),
    ("Purchase", PURCHASE_PAYMENT_EXPENSE),
    ("Payment", PURCHASE_PAYMENT_EXPENSE),
    ("Interest", MISCELLANEOUS),
    ("Refund", MISCELLANEOUS),
    ("Reversal", MISCELLANEOUS),
]

DEFAULT_BANKING_KEYWORDS: list[str] = [
    "statement",
    "account",
    "balance",
    "transaction",
    "credit",
    "debit",
    "deposit",
    "withdrawal",
    "transfer",
    "payment",
    "bank",
    "mcb",
    "mauritius commercial bank",
    "opening balance",
    "closing balance",
    "iban",
    "value date",
    "trans date",
]

CURRENCY_INDICATOR_PATTERN = r"\b(?:MUR|USD|EUR|GBP|ZAR|INR)\b|\bRs\.?(?=\s|\d)|[$€£₨]"
