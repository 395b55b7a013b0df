"""Word catalog: theme -> difficulty -> words.

The catalog is static data. ``/api/libraries`` exposes it as-is so clients
can render the theme/difficulty pickers.
"""
from __future__ import annotations

import random
from typing import Dict, List

WORD_LIBRARIES: Dict[str, dict] = {
    "animals": {
        "name": "Animals",
        "description": "Animal species from all over the world",
        "words": {
            "easy": ["Dog", "Cat", "Horse", "Cow", "Pig", "Chicken", "Duck", "Sheep", "Goat", "Rabbit"],
            "medium": ["Elephant", "Giraffe", "Zebra", "Lion", "Tiger", "Panda", "Koala", "Penguin", "Dolphin", "Whale"],
            "hard": ["Axolotl", "Quetzal", "Okapi", "Gharial", "Aye-aye", "Pangolin", "Tapir", "Binturong", "Fossa", "Numbat"],
        },
    },
    "food": {
        "name": "Food & Drink",
        "description": "Tasty dishes and drinks",
        "words": {
            "easy": ["Apple", "Bread", "Cheese", "Milk", "Water", "Rice", "Noodles", "Egg", "Butter", "Sugar"],
            "medium": ["Lasagna", "Sushi", "Cappuccino", "Croissant", "Paella", "Quinoa", "Hummus", "Gazpacho", "Risotto", "Tiramisu"],
            "hard": ["Bouillabaisse", "Ceviche", "Maultasche", "Borscht", "Kimchi", "Pho", "Mole", "Tagine", "Pierogi", "Baklava"],
        },
    },
    "objects": {
        "name": "Objects",
        "description": "Everyday and unusual objects",
        "words": {
            "easy": ["Chair", "Table", "Book", "Phone", "Car", "House", "Window", "Door", "Lamp", "Clock"],
            "medium": ["Computer", "Microwave", "Vacuum cleaner", "Washing machine", "Television", "Fridge", "Sofa", "Wardrobe", "Mirror", "Painting"],
            "hard": ["Kaleidoscope", "Astrolabe", "Sextant", "Chronometer", "Barometer", "Hygrometer", "Seismograph", "Spectrometer", "Theodolite", "Planimeter"],
        },
    },
    "activities": {
        "name": "Activities",
        "description": "Hobbies, sports and pastimes",
        "words": {
            "easy": ["Running", "Swimming", "Reading", "Singing", "Dancing", "Painting", "Cooking", "Sleeping", "Eating", "Playing"],
            "medium": ["Climbing", "Surfing", "Photography", "Gardening", "Fishing", "Hiking", "Cycling", "Skiing", "Sailing", "Riding"],
            "hard": ["Falconry", "Calligraphy", "Origami", "Bonsai", "Geocaching", "Parkour", "Aikido", "Archery", "Slacklining", "Kitesurfing"],
        },
    },
}


def has_words(theme: str, difficulty: str) -> bool:
    library = WORD_LIBRARIES.get(theme)
    if library is None:
        return False
    return bool(library["words"].get(difficulty))


def word_list(theme: str, difficulty: str) -> List[str]:
    """Return the words for *theme*/*difficulty*.

    Raises ``KeyError`` when the combination is not in the catalog.
    """
    return WORD_LIBRARIES[theme]["words"][difficulty]


def pick_word(theme: str, difficulty: str) -> str:
    return random.choice(word_list(theme, difficulty))


__all__ = ["WORD_LIBRARIES", "has_words", "word_list", "pick_word"]
