"""HTTP gateway for the Sacred Pathways web app."""
