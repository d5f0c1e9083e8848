"""Pizzeria MCP Server.

In-memory pizza ordering assistant for AI agents.

This package provides:
- A pizza catalog loaded at startup from JSON or a line-oriented text file
- A single in-memory cart shared by every entry point
- MCP tools over stdio for the agent to browse pizzas and fill the cart
- A read-only, auto-refreshing HTTP page showing the cart to a human

Tools:
1. list_pizzas - Browse the catalog with optional filters
2. add_to_cart - Add a pizza to the cart
3. remove_from_cart - Remove a pizza from the cart
4. get_cart - Show cart contents and subtotal
"""

__version__ = "1.0.0"
