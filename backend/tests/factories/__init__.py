from .plant import PlantFormFactory, PlantLogFormFactory

__all__ = [
    "PlantFormFactory",
    "PlantLogFormFactory",
]
