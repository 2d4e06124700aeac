"""
Contracts (data models).

This folder defines the shapes shared by the proxy, the spreadsheet sources
and the augmentation strategies:
- Spreadsheet source / sheet interfaces
- Pricing line items, columns, quote parameters and estimates
- Bank and insurer display-name mappings

Both the Google Sheets and the in-memory sources should use these contracts.
"""
