"""
handlers/ - Telegram layer
==========================
Commands, file uploads, receipt photos and inline-button callbacks.
Each handler parses the update, calls a service from the shared container
and turns the result (or the FinanceError's user message) into a reply.
"""
