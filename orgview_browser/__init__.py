"""Streamlit browser and workbook loading for the organization viewer."""
