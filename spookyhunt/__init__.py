"""
Spooky Hunt - In-venue scavenger hunt engine.

Players unlock locations in sequence by scanning a location code, taking
a photo and answering a quiz. The engine provides:
- Unlock resolution (strict linear progression)
- Scan code validation
- Quiz cooldown after wrong answers
- Progress percentage and achievements
"""

__version__ = "0.1.0"
