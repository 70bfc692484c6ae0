"""Sprint Analytics - sprint reporting from issue tracker and source control data.

This package assembles per-sprint reports: base sprint metrics, tiered
retrospective analytics, velocity trends and forecasts, and correlation of
commits and pull requests with issue tracker items.
"""

__version__ = "0.1.0"
