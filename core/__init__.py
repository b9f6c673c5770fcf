"""Core (UI-agnostic) dashboard logic.

This package contains:
- compiled arrivals / exchange-rate / financial-flow data
- phase segmentation and visibility masking
- derived series (difference overlays, provider transition) and summaries
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict), render lifecycle and export
"""
