"""Infrastructure layer: configuration, logging, persistence and the classifier client."""
