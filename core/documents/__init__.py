"""
Studio Documents
================
Quote and invoice numbering. Rendering is handled outside the engine;
it receives the frozen line items and totals only.
"""
