"""Repositories: narrow SQL adapters over the CMDB tables."""
