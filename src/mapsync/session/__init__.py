"""Per-map sessions — debouncing, view reporting, markers, and routing."""

from mapsync.session.debounce import Debouncer
from mapsync.session.markers import IconDefinition, Marker, MarkerSetReconciler
from mapsync.session.registry import SessionRegistry
from mapsync.session.session import MapSession
from mapsync.session.view import ViewState, ViewStateReporter

__all__ = [
    "Debouncer",
    "IconDefinition",
    "MapSession",
    "Marker",
    "MarkerSetReconciler",
    "SessionRegistry",
    "ViewState",
    "ViewStateReporter",
]
