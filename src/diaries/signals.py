"""Signals announcing collaboration changes to fan-out consumers.

Both fire only after the surrounding transaction commits.

``collaboration_requested`` sends ``diary`` and ``request``.
``collaboration_reviewed`` sends ``diary``, ``request``, ``action`` and ``reviewer``.
"""

from django.dispatch import Signal

collaboration_requested = Signal()
collaboration_reviewed = Signal()
