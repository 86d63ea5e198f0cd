"""Shift Ledger package.

Feature modules (guilds, shifts, reports, roster, actions) each carry a
model, a repository port, a MySQL adapter and a service; a thin Flask
controller layer sits on top.
"""
