"""WebSocket proxy source tree."""
