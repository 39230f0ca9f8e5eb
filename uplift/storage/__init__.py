"""Store bootstrap — decides which updates apply and registers them.

The update engine never looks at store versions. This package does: it
reads the stored version, picks the applicable units from a catalog and
hands them to an UpdateSystem in ascending version order.
"""
