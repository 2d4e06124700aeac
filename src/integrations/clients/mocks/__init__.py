"""
Mock integration clients.

These clients serve fixed data without calling any external API.
They are used when:
- No GOOGLE_SPREADSHEET_ID is configured (local runs)
- We want to test augmentation end-to-end without Google Sheets

Important:
- Mock sources must follow the SAME interface as the real HTTP source.
"""
