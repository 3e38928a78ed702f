"""Utility helpers for irmemo."""
