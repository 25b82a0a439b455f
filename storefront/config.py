# storefront.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du storefront.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose l'URL du backend REST, les délais réseau, les drapeaux de cookies
- Expose la stratégie de session (cookies UID/CID/SID/AID ou bearer token) et le choix des articles du paiement
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name, default)).lower() in ("1", "true", "yes")

def _env_float(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Backend REST: peut parfois être fourni sans schéma, on préfixe en http:// si nécessaire
API_BASE_URL = _clean_env(os.getenv("API_BASE_URL") or "http://localhost:4000")
if API_BASE_URL and not API_BASE_URL.startswith("http"):
    API_BASE_URL = "http://" + API_BASE_URL
API_BASE_URL = API_BASE_URL.rstrip("/")

# Délais réseau (secondes): bornent les états loading / Loading
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 10.0)
PAYMENT_TIMEOUT = _env_float("PAYMENT_TIMEOUT", 15.0)

# Vues checkout montées: durée de vie et nombre max par utilisateur (les plus anciennes sont démontées)
CHECKOUT_TTL = _env_float("CHECKOUT_TTL", 30 * 60)
CHECKOUT_MAX_PER_OWNER = int(_env_float("CHECKOUT_MAX_PER_OWNER", 3))

# Cookies: la combinaison observée (non secure + cross-site) n'est pas le défaut
COOKIE_SECURE = _env_flag("COOKIE_SECURE", "false")
COOKIE_CROSS_SITE = _env_flag("COOKIE_CROSS_SITE", "false")
COOKIE_MAX_AGE = int(_env_float("COOKIE_MAX_AGE", 60 * 60 * 24))

# Entrée longue durée du flux bearer (équivalent localStorage "jwtToken")
BEARER_COOKIE_NAME = _clean_env(os.getenv("BEARER_COOKIE_NAME") or "jwtToken")
BEARER_MAX_AGE = int(_env_float("BEARER_MAX_AGE", 60 * 60 * 24 * 30))

# Stratégie de session pilotée par POST /auth/login: "cookies" ou "bearer"
SESSION_STRATEGY = _clean_env(os.getenv("SESSION_STRATEGY") or "cookies").lower()

# Articles envoyés à POST /payment: "cart" (panier réel) ou "fixed" (liste configurée)
PAYMENT_ITEMS_SOURCE = _clean_env(os.getenv("PAYMENT_ITEMS_SOURCE") or "cart").lower()
PAYMENT_FIXED_ITEMS = [i.strip() for i in _clean_env(os.getenv("PAYMENT_FIXED_ITEMS") or "xl-tshirt").split(",") if i.strip()]

# Stripe: clé publique pour le widget, clé secrète pour la confirmation côté serveur
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Vues de repli du Route Guard
LOGIN_PATH = os.getenv("LOGIN_PATH", "/login")
NOT_FOUND_PATH = os.getenv("NOT_FOUND_PATH", "/not-found")
HOME_PATH = os.getenv("HOME_PATH", "/")
