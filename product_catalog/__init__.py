"""Product catalog service.

Multi-tenant product catalog with find-or-create resolution, AI-assisted
category/allergen classification and atomic batch stock adjustment.
"""

__version__ = "0.1.0"
