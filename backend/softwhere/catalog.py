"""
Static pricing tables and the service catalog used by the estimator wizard.

Everything here is reference data loaded once at import. The mappings are
exposed read-only; nothing in the application mutates them.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, FrozenSet

PROJECT_TYPES: Tuple[str, ...] = ("mobile", "web", "telegram", "ai", "desktop", "other")
COMPLEXITIES: Tuple[str, ...] = ("mvp", "standard", "enterprise")
PLATFORMS: Tuple[str, ...] = ("ios", "android")

DEFAULT_PROJECT_TYPE = "other"

# USD per hour
HOURLY_RATE = 35

# Core structure, navigation and setup
BASE_HOURS: Mapping[str, float] = MappingProxyType({
    "mobile": 200,
    "web": 250,
    "telegram": 150,
    "ai": 250,
    "desktop": 300,
    "other": 200,
})

COMPLEXITY_MULTIPLIER: Mapping[str, float] = MappingProxyType({
    "mvp": 1,
    "standard": 1.5,
    "enterprise": 2,
})

FEATURE_HOURS: Mapping[str, float] = MappingProxyType({
    "camera": 35,
    "gps": 22,
    "notifications": 17,
    "payments": 300,  # Stripe, Braintree
    "payments_regional": 250,  # Payme, Click, Uzum, YooKassa, SberPay
    "chat": 28,
    "offline": 200,
    "video": 300,
    "biometric": 14,
    "auth": 22,
    "cms": 34,
    "search": 17,
    "analytics": 14,
    "blog": 11,
    "multilang": 20,
    "api": 28,
    "inline_keyboard": 11,
    "webhooks": 14,
    "miniapp": 57,
    "llm": 57,
    "rag": 71,
    "embeddings": 42,
    "finetuning": 114,
    "api_integration": 34,
    "autoupdate": 17,
    "installer": 11,
    "tray": 8,
    "cloud_sync": 28,
    "consulting": 14,
})

# 13 screens ~ 195h on top of the base structure
PAGE_HOURS = 15

TECH_STACK_ADJUSTMENT: Mapping[str, float] = MappingProxyType({
    "ios_native": 1.15,
    "android_native": 1.15,
    "swift_kotlin": 1.15,
    "flutter": 0.95,
    "react_native": 1,
    "dotnet_maui": 1.05,
    "nextjs": 1,
    "remix": 1,
    "nuxt": 1,
    "react_vite": 0.98,
    "vue": 0.98,
    "angular": 1.1,
    "nestjs": 1.1,
    "express": 1,
    "fastapi": 1,
    "django": 1.05,
    "go_gin": 1.05,
    "dotnet": 1.1,
    "rails": 1,
    "laravel": 1,
    "langchain": 1.05,
    "openai_api": 1,
    "electron": 1,
    "tauri": 0.95,
    "postgresql": 1,
    "mongodb": 1,
    "redis": 1.02,
    "supabase": 0.95,
    "firebase": 0.98,
})

# First-year support, fraction of development cost
SUPPORT_RATE = 0.1

# Parallel iOS + Android teams: ~75h/week (16 weeks for 1200h)
HOURS_PER_WEEK_SINGLE = 40
HOURS_PER_WEEK_PARALLEL = 75


@dataclass(frozen=True)
class ServiceSubtype:
    id: str
    label: str
    includedFeatures: Tuple[str, ...] = ()
    impliedTech: Optional[str] = None


@dataclass(frozen=True)
class FeatureOption:
    id: str
    label: str
    category: str

    @property
    def hours(self) -> float:
        return FEATURE_HOURS.get(self.id, 0)

    @property
    def price(self) -> float:
        return self.hours * HOURLY_RATE


@dataclass(frozen=True)
class TechOption:
    id: str
    label: str
    group: str
    serviceTypes: FrozenSet[str]

    @property
    def impactFactor(self) -> float:
        return TECH_STACK_ADJUSTMENT.get(self.id, 1)


@dataclass(frozen=True)
class TechGroup:
    group: str
    label: str
    options: Tuple[TechOption, ...]


SERVICE_SUBTYPES: Mapping[str, Tuple[ServiceSubtype, ...]] = MappingProxyType({
    "mobile": (
        ServiceSubtype("ios", "iOS"),
        ServiceSubtype("android", "Android"),
        ServiceSubtype("both", "iOS + Android"),
    ),
    "web": (
        ServiceSubtype("landing", "Landing page"),
        ServiceSubtype("corporate", "Corporate website"),
        ServiceSubtype("ecommerce", "E-commerce"),
        ServiceSubtype("saas", "SaaS"),
        ServiceSubtype("portal", "Portal"),
    ),
    "telegram": (
        ServiceSubtype("bot", "Bot"),
        ServiceSubtype("miniapp", "Mini App", includedFeatures=("miniapp",)),
        ServiceSubtype("bot_miniapp", "Bot + Mini App", includedFeatures=("miniapp",)),
    ),
    "ai": (
        ServiceSubtype("chatbot", "AI chatbot", includedFeatures=("llm",)),
        ServiceSubtype("rag", "RAG assistant", includedFeatures=("rag",)),
        ServiceSubtype("custom_ml", "Custom ML"),
        ServiceSubtype("integration", "AI integration"),
        ServiceSubtype("full_product", "Full AI product"),
    ),
    "desktop": (
        ServiceSubtype("electron", "Electron", impliedTech="electron"),
        ServiceSubtype("tauri", "Tauri", impliedTech="tauri"),
        ServiceSubtype("native", "Native"),
    ),
    "other": (
        ServiceSubtype("consulting", "Consulting"),
        ServiceSubtype("custom", "Custom development"),
        ServiceSubtype("erp_crm", "ERP / CRM"),
    ),
})

FEATURES_BY_SERVICE: Mapping[str, Tuple[FeatureOption, ...]] = MappingProxyType({
    "mobile": (
        FeatureOption("camera", "Camera", "core"),
        FeatureOption("gps", "GPS / maps", "core"),
        FeatureOption("notifications", "Push notifications", "core"),
        FeatureOption("payments", "Payments", "core"),
        FeatureOption("payments_regional", "Regional payments", "core"),
        FeatureOption("chat", "Chat", "core"),
        FeatureOption("offline", "Offline mode", "core"),
        FeatureOption("video", "Video", "media"),
        FeatureOption("biometric", "Biometric login", "auth"),
    ),
    "web": (
        FeatureOption("auth", "Authentication", "core"),
        FeatureOption("cms", "CMS", "core"),
        FeatureOption("payments", "Payments", "core"),
        FeatureOption("payments_regional", "Regional payments", "core"),
        FeatureOption("search", "Search", "core"),
        FeatureOption("analytics", "Analytics", "core"),
        FeatureOption("blog", "Blog", "content"),
        FeatureOption("multilang", "Multi-language", "content"),
        FeatureOption("api", "API", "integrations"),
    ),
    "telegram": (
        FeatureOption("inline_keyboard", "Inline keyboard", "core"),
        FeatureOption("webhooks", "Webhooks", "core"),
        FeatureOption("payments", "Payments", "core"),
        FeatureOption("payments_regional", "Regional payments", "core"),
        FeatureOption("miniapp", "Mini App", "advanced"),
    ),
    "ai": (
        FeatureOption("llm", "LLM integration", "core"),
        FeatureOption("rag", "RAG", "core"),
        FeatureOption("embeddings", "Embeddings", "core"),
        FeatureOption("finetuning", "Fine-tuning", "advanced"),
        FeatureOption("api_integration", "API integration", "advanced"),
    ),
    "desktop": (
        FeatureOption("autoupdate", "Auto-update", "core"),
        FeatureOption("installer", "Installer", "core"),
        FeatureOption("tray", "System tray", "core"),
        FeatureOption("cloud_sync", "Cloud sync", "integrations"),
    ),
    "other": (
        FeatureOption("consulting", "Consulting", "core"),
        FeatureOption("api", "API", "integrations"),
    ),
})

_BACKEND_ALL = frozenset({"mobile", "web", "telegram", "ai", "desktop"})

TECH_STACK_OPTIONS: Tuple[TechOption, ...] = (
    # mobile app framework
    TechOption("swift_kotlin", "Swift / Kotlin", "mobile", frozenset({"mobile"})),
    TechOption("flutter", "Flutter", "mobile", frozenset({"mobile"})),
    TechOption("react_native", "React Native", "mobile", frozenset({"mobile"})),
    TechOption("dotnet_maui", ".NET MAUI", "mobile", frozenset({"mobile"})),
    # web frontend
    TechOption("nextjs", "Next.js", "web_frontend", frozenset({"web"})),
    TechOption("remix", "Remix", "web_frontend", frozenset({"web"})),
    TechOption("nuxt", "Nuxt", "web_frontend", frozenset({"web"})),
    TechOption("react_vite", "React + Vite", "web_frontend", frozenset({"web"})),
    TechOption("vue", "Vue", "web_frontend", frozenset({"web"})),
    TechOption("angular", "Angular", "web_frontend", frozenset({"web"})),
    # backend
    TechOption("nestjs", "NestJS", "backend", frozenset({"web", "telegram", "mobile"})),
    TechOption("express", "Express", "backend", frozenset({"web", "telegram", "mobile"})),
    TechOption("fastapi", "FastAPI", "backend", frozenset({"web", "ai", "mobile"})),
    TechOption("django", "Django", "backend", frozenset({"web", "ai", "mobile"})),
    TechOption("go_gin", "Go / Gin", "backend", frozenset({"web", "mobile"})),
    TechOption("dotnet", ".NET", "backend", frozenset({"web", "desktop", "mobile"})),
    TechOption("rails", "Rails", "backend", frozenset({"web"})),
    TechOption("laravel", "Laravel", "backend", frozenset({"web"})),
    # databases / BaaS
    TechOption("postgresql", "PostgreSQL", "backend", _BACKEND_ALL),
    TechOption("mongodb", "MongoDB", "backend", frozenset({"mobile", "web", "telegram", "ai"})),
    TechOption("redis", "Redis", "backend", frozenset({"web", "ai", "mobile"})),
    TechOption("supabase", "Supabase", "backend", frozenset({"web", "mobile"})),
    TechOption("firebase", "Firebase", "backend", frozenset({"mobile", "web"})),
    # ai
    TechOption("langchain", "LangChain", "ai", frozenset({"ai"})),
    TechOption("openai_api", "OpenAI API", "ai", frozenset({"ai"})),
    # desktop shell, normally chosen through the subtype
    TechOption("electron", "Electron", "desktop", frozenset({"desktop"})),
    TechOption("tauri", "Tauri", "desktop", frozenset({"desktop"})),
)

TECH_GROUP_LABELS: Mapping[str, str] = MappingProxyType({
    "mobile": "Mobile",
    "backend": "Backend",
    "web_frontend": "Frontend",
    "web_backend": "Web backend",
    "ai": "AI",
    "desktop": "Desktop",
})

# Which tech groups the wizard offers per service type
_TECH_GROUPS_BY_SERVICE: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "mobile": ("mobile", "backend"),
    "web": ("web_frontend", "backend"),
    "ai": ("ai", "backend"),
    "desktop": ("backend",),
    "telegram": ("backend",),
    "other": (),
})


def find_subtype(project_type: str, subtype: Optional[str]) -> Optional[ServiceSubtype]:
    if not subtype:
        return None
    for sub in SERVICE_SUBTYPES.get(project_type, ()):
        if sub.id == subtype:
            return sub
    return None


def implied_features(project_type: str, subtype: Optional[str] = None) -> FrozenSet[str]:
    """Feature ids bundled with a subtype (e.g. ``rag`` for ai/rag)."""
    sub = find_subtype(project_type, subtype)
    return frozenset(sub.includedFeatures) if sub else frozenset()


def implied_tech(project_type: str, subtype: Optional[str] = None) -> Optional[str]:
    """Tech id implied by a subtype (e.g. ``electron`` for desktop/electron)."""
    sub = find_subtype(project_type, subtype)
    return sub.impliedTech if sub else None


def features_for_service(project_type: str, subtype: Optional[str] = None) -> List[FeatureOption]:
    """
    Features the wizard offers for a service, minus the ones the subtype
    already includes. Unknown service types get the ``other`` list.
    """
    options = FEATURES_BY_SERVICE.get(project_type, FEATURES_BY_SERVICE[DEFAULT_PROJECT_TYPE])
    included = implied_features(project_type, subtype)
    return [f for f in options if f.id not in included]


def tech_for_service(project_type: str, subtype: Optional[str] = None) -> List[TechGroup]:
    """
    Tech options grouped for display. ``other`` has no tech stack, and the
    tech implied by the subtype is never offered again.
    """
    groups = _TECH_GROUPS_BY_SERVICE.get(project_type, ())
    if not groups:
        return []

    implied = implied_tech(project_type, subtype)
    available = [
        t for t in TECH_STACK_OPTIONS
        if project_type in t.serviceTypes and t.id != implied
    ]

    out: List[TechGroup] = []
    for group in groups:
        label = TECH_GROUP_LABELS[group]
        if project_type == "web" and group == "backend":
            label = TECH_GROUP_LABELS["web_backend"]
        options = tuple(t for t in available if t.group == group)
        if options:
            out.append(TechGroup(group=group, label=label, options=options))
    return out


def catalog_snapshot(project_type: Optional[str] = None, subtype: Optional[str] = None) -> Dict:
    """JSON-friendly catalog for the wizard; all services when no type is given."""
    types = [project_type] if project_type else list(PROJECT_TYPES)
    services = []
    for ptype in types:
        services.append({
            "id": ptype,
            "baseHours": BASE_HOURS.get(ptype, BASE_HOURS[DEFAULT_PROJECT_TYPE]),
            "subtypes": [
                {
                    "id": s.id,
                    "label": s.label,
                    "includedFeatures": list(s.includedFeatures),
                    "impliedTech": s.impliedTech,
                }
                for s in SERVICE_SUBTYPES.get(ptype, ())
            ],
            "features": [
                {"id": f.id, "label": f.label, "category": f.category, "hours": f.hours, "price": f.price}
                for f in features_for_service(ptype, subtype)
            ],
            "techStack": [
                {
                    "group": g.group,
                    "label": g.label,
                    "options": [{"id": t.id, "label": t.label, "impactFactor": t.impactFactor} for t in g.options],
                }
                for g in tech_for_service(ptype, subtype)
            ],
        })
    return {
        "hourlyRate": HOURLY_RATE,
        "pageHours": PAGE_HOURS,
        "supportRate": SUPPORT_RATE,
        "complexityMultiplier": dict(COMPLEXITY_MULTIPLIER),
        "services": services,
    }
