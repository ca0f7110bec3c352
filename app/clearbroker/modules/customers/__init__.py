"""
Customers module.

Each broker manages its own exporters/importers. Records are created in
"pending" status and move between active/pending/inactive; they are never deleted.
"""
