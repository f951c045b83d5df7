"""
Summary and key-information generators for segments.
"""
from .key_info import extract_key_info, extract_key_points, extract_links, generate_summary
from .summary_builder import extract_questions, extract_takeaways, extract_topics

__all__ = [
    "extract_key_info",
    "extract_key_points",
    "extract_links",
    "generate_summary",
    "extract_questions",
    "extract_takeaways",
    "extract_topics",
]
