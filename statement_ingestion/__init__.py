"""Statement ingestion: validate, parse and categorize bank statement text into a ledger."""
