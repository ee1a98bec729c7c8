BRAND = "ServiceNow"

FEATURED_SERVICES = [
    {"icon": "🔧", "name": "Plumbing", "workers": "150+ workers"},
    {"icon": "⚡", "name": "Electrical", "workers": "120+ workers"},
    {"icon": "🧹", "name": "Cleaning", "workers": "200+ workers"},
    {"icon": "🔨", "name": "Carpentry", "workers": "80+ workers"},
    {"icon": "🎨", "name": "Painting", "workers": "95+ workers"},
    {"icon": "❄️", "name": "AC Repair", "workers": "60+ workers"},
    {"icon": "🌱", "name": "Gardening", "workers": "110+ workers"},
    {"icon": "🦟", "name": "Pest Control", "workers": "45+ workers"},
]

# marketing copy only; no proximity search exists behind "Real-Time Location"
FEATURES = [
    {
        "icon": "map-pin",
        "title": "Real-Time Location",
        "description": "Find workers near you instantly with live GPS tracking",
    },
    {
        "icon": "star",
        "title": "Verified Professionals",
        "description": "All workers are KYC verified with ratings from real customers",
    },
    {
        "icon": "clock",
        "title": "Instant Booking",
        "description": "Book services in seconds, get confirmed in minutes",
    },
    {
        "icon": "shield",
        "title": "Secure & Trusted",
        "description": "Safe payments and background-checked service providers",
    },
]

HOW_IT_WORKS = [
    {"step": "1", "title": "Choose Service", "desc": "Select the type of service you need"},
    {"step": "2", "title": "Find Workers", "desc": "See available workers near you with ratings"},
    {"step": "3", "title": "Book Instantly", "desc": "Confirm booking and get service completed"},
]


def landing_page() -> dict:
    return {
        "brand": BRAND,
        "hero": {
            "badge": "Trusted by 10,000+ customers",
            "headline": "Find Trusted Local Workers Instantly",
            "subheadline": (
                "Connect with verified service professionals in your area. Book plumbers, "
                "electricians, cleaners, and more with real-time availability."
            ),
            "actions": [
                {"label": "Find Workers", "href": "/services"},
                {"label": "Become a Worker", "href": "/auth"},
            ],
        },
        "services": [{**s, "href": "/services"} for s in FEATURED_SERVICES],
        "features": FEATURES,
        "how_it_works": HOW_IT_WORKS,
        "navigation": {"login": "/auth", "get_started": "/auth", "browse": "/services"},
    }
