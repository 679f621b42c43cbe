"""Indian Expense Tracker package.

AI-assisted personal expense tracking: natural language expense entry,
automatic categorization, and periodic financial insight reports.  See
``mcp_server.py`` for the tool server and ``report.py`` for the report
entry point.
"""
