"""HTTP API for the compliance tracker."""
