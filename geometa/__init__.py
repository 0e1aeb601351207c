"""GeoMeta Memorizer: spaced-repetition study of game-location meta clues."""
