"""HTTP interface for the proof checker."""
