"""Category suggestions from application metadata.

The heuristic tier of the classification waterfall. Uses the category an
application declares about itself (macOS ``LSApplicationCategoryType``)
and, failing that, well-known vendor bundle-id prefixes. Suggestions are
never applied as if they were user rules.
"""

from typing import Optional

from tracksy.core.models import AppSuggestion

OS_CATEGORY_CONFIDENCE = 0.95
VENDOR_CONFIDENCE = 0.85

APPLE_CATEGORY_TYPES = {
    # Business & productivity
    "public.app-category.business": "Work",
    "public.app-category.productivity": "Work",
    "public.app-category.finance": "Work",
    # Development
    "public.app-category.developer-tools": "Development",
    # Design
    "public.app-category.graphics-design": "Design",
    "public.app-category.photography": "Design",
    "public.app-category.video": "Design",
    # Communication
    "public.app-category.social-networking": "Communication",
    # Entertainment
    "public.app-category.entertainment": "Entertainment",
    "public.app-category.games": "Entertainment",
    "public.app-category.music": "Entertainment",
    "public.app-category.action-games": "Entertainment",
    "public.app-category.adventure-games": "Entertainment",
    "public.app-category.arcade-games": "Entertainment",
    "public.app-category.board-games": "Entertainment",
    "public.app-category.card-games": "Entertainment",
    "public.app-category.casino-games": "Entertainment",
    "public.app-category.dice-games": "Entertainment",
    "public.app-category.educational-games": "Learning",
    "public.app-category.family-games": "Entertainment",
    "public.app-category.kids-games": "Entertainment",
    "public.app-category.music-games": "Entertainment",
    "public.app-category.puzzle-games": "Entertainment",
    "public.app-category.racing-games": "Entertainment",
    "public.app-category.role-playing-games": "Entertainment",
    "public.app-category.simulation-games": "Entertainment",
    "public.app-category.sports-games": "Entertainment",
    "public.app-category.strategy-games": "Entertainment",
    "public.app-category.trivia-games": "Entertainment",
    "public.app-category.word-games": "Entertainment",
    # Education & reference
    "public.app-category.education": "Learning",
    "public.app-category.reference": "Learning",
    "public.app-category.books": "Learning",
    # Lifestyle
    "public.app-category.lifestyle": "Personal",
    "public.app-category.healthcare-fitness": "Personal",
    "public.app-category.medical": "Personal",
    "public.app-category.food-drink": "Personal",
    "public.app-category.travel": "Personal",
    "public.app-category.sports": "Personal",
    "public.app-category.shopping": "Personal",
    "public.app-category.news": "Personal",
    "public.app-category.magazines-newspapers": "Personal",
    # Utilities
    "public.app-category.weather": "Utilities",
    "public.app-category.utilities": "Utilities",
    "public.app-category.navigation": "Utilities",
}

VENDOR_CATEGORY_MAP = {
    # Development
    "com.apple.dt": "Development",
    "com.jetbrains": "Development",
    "com.microsoft.VSCode": "Development",
    "com.visualstudio": "Development",
    "com.github": "Development",
    "com.docker": "Development",
    "dev.warp": "Development",
    "io.alacritty": "Development",
    "com.googlecode.iterm2": "Development",
    "com.mitchellh.ghostty": "Development",
    # Design
    "com.adobe": "Design",
    "com.figma": "Design",
    "com.bohemiancoding.sketch": "Design",
    "com.canva": "Design",
    "com.pixelmator": "Design",
    # Communication
    "com.slack": "Communication",
    "com.tinyspeck.slackmacgap": "Communication",
    "com.microsoft.teams": "Communication",
    "us.zoom": "Communication",
    "com.discord": "Communication",
    "com.apple.mail": "Communication",
    "com.readdle.smartemail": "Communication",
    # Entertainment
    "com.spotify": "Entertainment",
    "com.apple.Music": "Entertainment",
    "com.netflix": "Entertainment",
    "tv.twitch": "Entertainment",
    "com.valvesoftware.steam": "Entertainment",
    # Social
    "com.twitter": "Social",
    "com.facebook": "Social",
    "com.burbn.instagram": "Social",
    "com.linkedin": "Social",
    # Office
    "com.microsoft.Word": "Work",
    "com.microsoft.Excel": "Work",
    "com.microsoft.Powerpoint": "Work",
    "com.microsoft.Outlook": "Communication",
    "com.apple.iWork": "Work",
    "md.obsidian": "Work",
    "com.notion": "Work",
    # Browsers are neutral; the page decides
    "com.google.Chrome": "Utilities",
    "com.apple.Safari": "Utilities",
    "org.mozilla.firefox": "Utilities",
    "com.brave.Browser": "Utilities",
    "com.microsoft.edgemac": "Utilities",
    "company.thebrowser.Browser": "Utilities",
    # Generic Apple fallback
    "com.apple": "Utilities",
}

# Longest prefix first so "com.apple.dt" wins over "com.apple".
_VENDOR_PREFIXES = sorted(VENDOR_CATEGORY_MAP, key=len, reverse=True)


def suggest_category(
    bundle_id: Optional[str] = None, app_category: Optional[str] = None
) -> Optional[AppSuggestion]:
    """Suggest a category for an application, or ``None``.

    *app_category* is the OS-declared category identifier and takes
    precedence over the *bundle_id* vendor prefix.
    """
    if app_category and app_category in APPLE_CATEGORY_TYPES:
        return AppSuggestion(
            category=APPLE_CATEGORY_TYPES[app_category],
            confidence=OS_CATEGORY_CONFIDENCE,
            source="lsappcategory",
        )

    if bundle_id:
        for prefix in _VENDOR_PREFIXES:
            if bundle_id.startswith(prefix):
                return AppSuggestion(
                    category=VENDOR_CATEGORY_MAP[prefix],
                    confidence=VENDOR_CONFIDENCE,
                    source="vendor",
                )

    return None
