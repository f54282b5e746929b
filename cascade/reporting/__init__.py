"""
Cascade Reporting Module
========================

Output rendering for query results.

Components:
- report_builder.py: JSON node lists and text impact reports
"""

from .report_builder import nodes_to_json, summary_to_json, generate_text_report
