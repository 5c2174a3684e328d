"""
Configuration settings for the Swift patterns search engine.
"""

import os
from pathlib import Path

# Base directories
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"

# Optional JSON file overriding/adding content sources
SOURCES_CONFIG = os.getenv("SOURCES_CONFIG", str(CONFIG_DIR / "sources.json"))


# LEXICAL SEARCH CONFIGURATION

SEARCH_CONFIG = {
    # Fuzzy tolerance as a fraction of query term length (max edit distance
    # is round(len(term) * fuzzy), capped at max_fuzzy)
    "fuzzy": 0.2,
    "max_fuzzy": 6,
    "prefix": True,

    # Index-level default field boosts
    "default_boost": {"title": 2.0, "topics": 1.5, "content": 1.0},

    # Boosts used when a content source searches its own patterns
    "source_boost": {"title": 2.5, "topics": 1.8, "content": 1.0},

    # Weight of the lexical match score when fused with static relevance
    "search_weight": 0.6,

    # Raw lexical scores at or above this value normalize to 100
    "score_normalizer": 10.0,

    "min_score": 0.0,

    # Security: maximum accepted query length
    "max_query_length": 1000,
}


# MATCH WEIGHTS (BM25+ on each field)

BM25_CONFIG = {
    "k1": 1.2,
    "b": 0.7,
    "d": 0.5,
    "prefix_weight": 0.375,
    "fuzzy_weight": 0.45,
}


# RELEVANCE SCORING

RELEVANCE_CONFIG = {
    # Known high-quality sources start at this baseline
    "baseline": 50,
    "code_bonus": 10,
}


# CACHE CONFIGURATION
#
# Three independent TTL tiers. Expiry is evaluated on read, there is no
# background eviction.

CACHE_CONFIG = {
    "feed_ttl_seconds": int(os.getenv("FEED_CACHE_TTL", "3600")),
    "article_ttl_seconds": int(os.getenv("ARTICLE_CACHE_TTL", "86400")),
    "intent_ttl_seconds": int(os.getenv("INTENT_CACHE_TTL", "600")),
}


# SEMANTIC RECALL CONFIGURATION
#
# Best-effort supplemental retrieval used when lexical search underperforms.

SEMANTIC_RECALL_CONFIG = {
    "enabled": os.getenv("SEMANTIC_RECALL_ENABLED", "false").lower() == "true",

    # Activate when max(relevance_score) / 100 of lexical results is below this
    "min_lexical_score": float(os.getenv("SEMANTIC_MIN_LEXICAL_SCORE", "0.35")),

    # Supplemental documents must reach this relevance score
    "min_relevance_score": int(os.getenv("SEMANTIC_MIN_RELEVANCE_SCORE", "70")),

    "top_k": 10,
}


# EMBEDDING MODEL CONFIGURATION
#
# In-memory index only, nothing is written to disk.

TXTAI_CONFIG = {
    "path": os.getenv("EMBEDDINGS_MODEL", "BAAI/bge-small-en-v1.5"),

    # Disable content storage - documents are resolved from the source cache
    "content": False,

    # Pure semantic index; lexical matching is handled by SearchIndex
    "keyword": False,

    # numpy backend for CPU-only exact search
    "backend": "numpy",
}

# Prepend the title N times before embedding to weight title similarity
TITLE_WEIGHT_MULTIPLIER = 2

# Only the first N characters of content are embedded
EMBEDDING_CONTENT_CHARS = 4000


# CONTENT EXTRACTION

CONTENT_CONFIG = {
    "fetch_timeout": 10,
    "excerpt_length": 300,
    "user_agent": "swift-patterns-search/1.0 (RSS Reader)",
}


# RSS CONFIGURATION

RSS_CONFIG = {
    "timeout_seconds": 30,
    "user_agent": "swift-patterns-search/1.0 (RSS Reader)",
}


# CONTENT SOURCES
#
# Behaviour is data: every source runs through the same PatternSource engine
# with its own keyword tables.

SOURCE_DEFINITIONS = {
    "sundell": {
        "name": "Swift by Sundell",
        "description": "Articles on Swift language features, architecture and testing",
        "type": "free",
        "feed_url": "https://www.swiftbysundell.com/feed.rss",
        "enabled_by_default": True,
        "fetch_full_article": False,
        "topic_keywords": {
            "testing": ["test", "unittest", "xctest", "mock"],
            "networking": ["network", "urlsession", "api", "http"],
            "architecture": ["architecture", "mvvm", "viper", "coordinator"],
            "swiftui": ["swiftui", "view", "state", "binding"],
            "concurrency": ["async", "await", "actor", "task", "thread"],
            "protocols": ["protocol", "generic", "associated type"],
            "performance": ["performance", "optimization", "memory", "speed"],
        },
        "quality_signals": {
            "how to": 5,
            "step by step": 5,
            "tutorial": 5,
            "guide": 4,
            "example": 4,
            "pattern": 6,
            "best practice": 8,
            "tip": 3,
            "architecture": 8,
            "testing": 7,
            "performance": 7,
            "concurrency": 7,
            "async": 6,
            "await": 6,
            "actor": 6,
            "protocol": 5,
            "generic": 5,
            "swiftui": 6,
            "combine": 6,
            "uikit": 5,
            "foundation": 4,
        },
    },
    "vanderlee": {
        "name": "SwiftLee (Antoine van der Lee)",
        "description": "Practical tips on debugging, performance and tooling",
        "type": "free",
        "feed_url": "https://www.avanderlee.com/feed/",
        "enabled_by_default": True,
        "fetch_full_article": True,
        "topic_keywords": {
            "debugging": ["debug", "breakpoint", "lldb", "xcode"],
            "performance": ["performance", "memory", "leak", "optimization"],
            "swiftui": ["swiftui", "view", "state", "binding"],
            "combine": ["combine", "publisher", "subscriber"],
            "concurrency": ["async", "await", "actor", "task"],
            "testing": ["test", "xctest", "mock"],
            "tooling": ["xcode", "git", "ci", "fastlane"],
        },
        "quality_signals": {
            "how to": 5,
            "step by step": 5,
            "tutorial": 5,
            "guide": 4,
            "example": 4,
            "tip": 3,
            "fix": 4,
            "solve": 4,
            "performance": 8,
            "memory": 7,
            "debugging": 7,
            "leak": 6,
            "optimization": 7,
            "profiling": 6,
            "concurrency": 7,
            "async": 6,
            "await": 6,
            "combine": 6,
            "swiftui": 6,
            "xcode": 5,
            "instruments": 6,
            "ci": 4,
            "fastlane": 4,
        },
    },
    "nilcoalescing": {
        "name": "Nil Coalescing",
        "description": "SwiftUI and Swift language deep dives",
        "type": "free",
        "feed_url": "https://nilcoalescing.com/feed.rss",
        "enabled_by_default": True,
        "fetch_full_article": True,
        "topic_keywords": {
            "swiftui": ["swiftui", "view", "modifier", "state", "binding"],
            "layout": ["layout", "stack", "grid", "alignment"],
            "animation": ["animation", "transition", "withanimation"],
            "accessibility": ["accessibility", "voiceover", "dynamic type"],
            "concurrency": ["async", "await", "actor", "task"],
            "macos": ["macos", "appkit", "window"],
        },
        "quality_signals": {
            "how to": 5,
            "tutorial": 5,
            "example": 4,
            "tip": 3,
            "swiftui": 7,
            "layout": 6,
            "animation": 6,
            "accessibility": 7,
            "modifier": 5,
            "observable": 6,
            "concurrency": 6,
            "async": 5,
            "macos": 4,
        },
    },
    "pointfree": {
        "name": "Point-Free",
        "description": "Functional programming, architecture and testing in Swift",
        "type": "free",
        "feed_url": "https://www.pointfree.co/blog/rss.xml",
        "enabled_by_default": True,
        "fetch_full_article": False,
        "topic_keywords": {
            "architecture": ["architecture", "tca", "composable", "reducer"],
            "testing": ["test", "snapshot", "xctest"],
            "dependencies": ["dependency", "dependencies", "injection"],
            "concurrency": ["async", "await", "actor", "task"],
            "swiftui": ["swiftui", "view", "navigation"],
        },
        "quality_signals": {
            "architecture": 8,
            "composable": 7,
            "reducer": 6,
            "testing": 7,
            "dependency": 6,
            "navigation": 5,
            "concurrency": 7,
            "async": 6,
            "swiftui": 6,
            "example": 4,
            "pattern": 6,
        },
    },
    "patreon": {
        "name": "Patreon",
        "description": "Premium posts from your Patreon subscriptions",
        "type": "premium",
        "feed_url": None,
        "enabled_by_default": False,
        "requires_auth": True,
        # Source counts as configured when this variable is set
        "auth_env": "PATREON_ACCESS_TOKEN",
        "topic_keywords": {},
        "quality_signals": {},
    },
}


# LOGGING CONFIGURATION

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "standard")

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "class": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        },
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "json" if LOG_FORMAT == "json" else "standard",
            "stream": "ext://sys.stderr"
        }
    },
    "loggers": {
        "api": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "search": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "": {  # Root logger
            "handlers": ["console"],
            "level": LOG_LEVEL
        }
    }
}


# API CONFIGURATION

API_CONFIG = {
    "host": os.getenv("API_HOST", "127.0.0.1"),
    "port": int(os.getenv("API_PORT", "8000")),
    "reload": os.getenv("RELOAD", "false").lower() == "true",
    "log_level": LOG_LEVEL.lower(),
    "cors_origins": [
        o.strip() for o in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",") if o.strip()
    ],
}


# ENVIRONMENT

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
