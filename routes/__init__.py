"""
Routes Package

This package contains all Flask blueprint route definitions for the
YouTube Comment Analyzer.

Blueprints:
- comment_routes: Video lookup, comment fetching, filtering and export
- analysis_routes: Translation, classification and analysis of workbooks
- testing_routes: URL validation and configuration checks
"""

# Import blueprints for easy access
from .analysis_routes import analysis_bp
from .comment_routes import comments_bp
from .testing_routes import testing_bp

__all__ = ['analysis_bp', 'comments_bp', 'testing_bp']
