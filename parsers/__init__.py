"""
parsers/ - File Import Layer
============================
Turns an uploaded bank statement (CSV/TSV, Excel, JSON or plain text) into an
ordered list of ParsedTransaction candidates. Pure functions only: no database
access and no Telegram types. Categorization happens later, in services/.
"""
