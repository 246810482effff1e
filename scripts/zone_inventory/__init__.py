"""Cloudflare zone inventory.

Enumerates zones and DNS records across multiple Cloudflare accounts with
pagination, flattens them into one CSV export, and reports per-account
summaries through Telegram.
"""

__version__ = "0.1.0"
