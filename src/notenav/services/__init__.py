"""Sidebar, tree menu and hierarchy services."""
