"""Runtime: retry loop, cancellation and observability."""
