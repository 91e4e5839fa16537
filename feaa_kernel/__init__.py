"""
FEAA Ordering Kernel

Pure ordering domain plus the persistence seam beneath it:
- Order cost model with capping, critical loading and quarterly recurrence
- Content-addressed payload interning for report data
- Lazy, memoized client field hydration
- Unit-of-work staging in front of a slow backing store
"""

__version__ = "0.1.0"
