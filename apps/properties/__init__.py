"""Properties app package.

The property catalog: listings with their nightly price and capacity.
The reservations app reads properties through its store and never
writes to them.
"""
