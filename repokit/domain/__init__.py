"""Domain layer: models, inputs, results and the class conventions tying them together."""
