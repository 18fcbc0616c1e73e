"""Services package: document storage, text extraction collaborators and report tables."""
