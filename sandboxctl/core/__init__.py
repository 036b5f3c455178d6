"""Core domain: recipes, engines, actions and results."""
