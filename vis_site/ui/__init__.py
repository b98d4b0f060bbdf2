"""
Streamlit UI for the VIS school site services.
"""
