"""
Live activity notifications.

Responsibilities:
- Derive venue activity (reviews, visits, recommendations) from the catalog.
- Deliver them one at a time on a cancellable interval timer.
- Carry navigation arrival announcements in the same feed.
"""
