"""Layout, fonts and colour-plane encoding for the e-paper page."""
