"""Tiffin Ledger package.

Mess (canteen) management backend organized by feature modules (members,
attendance, stats, ...) with a thin Flask controller layer over service and
repository layers. The ``client`` package holds the API client and the
attendance board state used by front-ends.
"""
