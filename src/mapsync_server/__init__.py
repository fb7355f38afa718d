"""mapsync server — FastAPI host for the map session registry."""
