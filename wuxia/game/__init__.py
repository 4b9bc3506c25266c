"""Game layer: AI decision engine, combat managers and encounter setup."""
