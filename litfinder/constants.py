from __future__ import annotations

"""Fixed vocabularies shared by the query interpreter, the adapters and the scorers.

Keeping the word lists in one place means the interpreter, the tag extractors
and the prompt builder all see the same terms.
"""

from typing import Dict

# ---------------------------------------------------------------------------
# Query interpretation
# ---------------------------------------------------------------------------

FILLER_WORDS = [
    "book",
    "books",
    "booklist",
]

# Checked as a case-insensitive prefix; longest names are tried first.
KNOWN_AUTHORS = [
    "osho",
    "patanjali",
    "vivekananda",
    "swami vivekananda",
    "sri aurobindo",
    "aurobindo",
    "ramana maharshi",
    "paramahansa yogananda",
    "yogananda",
    "nisargadatta maharaj",
    "nisargadatta",
    "adi shankaracharya",
    "shankaracharya",
    "jiddu krishnamurti",
    "krishnamurti",
    "swami sivananda",
    "sivananda",
    "ramakrishna",
    "eknath easwaran",
    "sadhguru",
    "thich nhat hanh",
    "alan watts",
    "smita venkatesh",
]

SERIES_INDICATORS = [
    "sri",
    "vidya",
    "gita",
    "upanishad",
    "sutra",
    "purana",
    "veda",
    "ramayana",
    "mahabharata",
]

# Words that open a scripture's own name ("Bhagavad Gita", "Brahma Sutra");
# a series split needs at least one word before the indicator outside this list.
SCRIPTURE_NAME_WORDS = {
    "bhagavad",
    "bhagavat",
    "bhagavata",
    "srimad",
    "shrimad",
    "ashtavakra",
    "avadhuta",
    "uddhava",
    "ribhu",
    "yoga",
    "brahma",
    "narada",
    "bhakti",
    "shiva",
    "vishnu",
    "devi",
    "garuda",
    "skanda",
    "markandeya",
    "valmiki",
    "adhyatma",
    "tulsi",
    "rig",
    "yajur",
    "sama",
    "atharva",
    "isha",
    "kena",
    "katha",
    "mundaka",
    "mandukya",
    "chandogya",
    "brihadaranyaka",
    "svetasvatara",
}

TOPIC_KEYWORDS = [
    "yoga",
    "meditation",
    "vedanta",
    "advaita",
    "tantra",
    "kundalini",
    "bhakti",
    "karma",
    "dharma",
    "moksha",
    "samadhi",
    "chakra",
    "mantra",
    "prana",
    "pranayama",
    "atman",
    "brahman",
    "shakti",
    "shiva",
    "vishnu",
    "krishna",
    "buddhism",
    "zen",
    "mindfulness",
    "upanishad",
    "gita",
    "veda",
    "sutra",
    "ayurveda",
    "sanskrit",
    "consciousness",
    "enlightenment",
    "philosophy",
    "devotion",
    "puja",
    "jyotish",
]

# ---------------------------------------------------------------------------
# Tag extraction
# ---------------------------------------------------------------------------

THEOLOGICAL_CONCEPTS = [
    "vedanta",
    "advaita",
    "yoga",
    "meditation",
    "tantra",
    "kundalini",
    "bhakti",
    "karma",
    "dharma",
    "moksha",
    "samadhi",
    "chakra",
    "mantra",
    "prana",
    "atman",
    "brahman",
    "shakti",
    "shiva",
    "vishnu",
    "krishna",
    "rama",
    "buddhism",
    "zen",
    "mindfulness",
    "upanishad",
    "gita",
    "veda",
    "sutra",
    "non-duality",
    "self-realization",
    "enlightenment",
    "liberation",
    "consciousness",
    "spiritual",
]

MAX_THEOLOGICAL_TAGS = 10

# Terms that already give a bibliographic query spiritual context.
SPIRITUAL_SUBJECTS = [
    "religion",
    "spirituality",
    "hinduism",
    "buddhism",
    "yoga",
    "vedanta",
    "philosophy",
    "meditation",
    "tantra",
    "upanishads",
    "bhagavad gita",
    "sanskrit",
]

SPIRITUAL_SUBJECT_FILTER = (
    "subject:(religion OR spirituality OR philosophy OR hinduism OR buddhism OR yoga)"
)

# ---------------------------------------------------------------------------
# Language tables
# ---------------------------------------------------------------------------

LANGUAGE_CODES_2: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "sa": "Sanskrit",
    "bn": "Bengali",
    "ta": "Tamil",
    "te": "Telugu",
    "mr": "Marathi",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "de": "German",
    "fr": "French",
}

LANGUAGE_CODES_3: Dict[str, str] = {
    "eng": "English",
    "hin": "Hindi",
    "san": "Sanskrit",
    "ben": "Bengali",
    "tam": "Tamil",
    "tel": "Telugu",
    "mar": "Marathi",
    "guj": "Gujarati",
    "pan": "Punjabi",
    "deu": "German",
    "ger": "German",
    "fra": "French",
    "fre": "French",
}

DEFAULT_LANGUAGE = "English"

# ---------------------------------------------------------------------------
# Source platforms (static metadata served by /api/sources)
# ---------------------------------------------------------------------------

SOURCE_PLATFORMS = [
    {
        "id": "exotic_india",
        "name": "Exotic India",
        "description": "Premier source for Indian art and spiritual literature",
        "base_url": "https://www.exoticindiaart.com",
        "logo_color": "#C45C26",
    },
    {
        "id": "gita_press",
        "name": "Gita Press",
        "description": "Authentic Hindu religious texts at affordable prices",
        "base_url": "https://gitapress.org",
        "logo_color": "#D4A574",
    },
    {
        "id": "chaukhamba",
        "name": "Chaukhamba",
        "description": "Academic Sanskrit and Ayurvedic literature",
        "base_url": "https://chaukhamba.com",
        "logo_color": "#8B4513",
    },
    {
        "id": "archive_org",
        "name": "Archive.org",
        "description": "Public domain spiritual texts and manuscripts",
        "base_url": "https://archive.org",
        "logo_color": "#428BCA",
    },
]
