"""
Routes des insights quotidiens.

`GET /insights/{feature}` renvoie l'insight du jour (horoscope, transits, luck_score, do_dont)
pour une langue et un contexte astrologique optionnel, en camelCase.
"""

from fastapi import APIRouter, HTTPException

from cosmic_insights.core.container import container
from cosmic_insights.domain.models import FEATURES, InsightContext

router = APIRouter(prefix="/insights", tags=["insights"])


@router.get("/{feature}")
async def get_insight(
    feature: str,
    language: str = "en",
    sign: str | None = None,
    moon_sign: str | None = None,
    nakshatra: str | None = None,
):
    """
    Retourne l'insight du jour.

    Paramètres:
    - feature: `horoscope` | `transits` | `luck_score` | `do_dont`
    - language: code langue (`en`, `hi`; autre -> anglais dans les prompts)
    - sign / moon_sign / nakshatra: contexte optionnel (clé de cache incluse)

    Erreurs: 404 si la fonctionnalité est inconnue, 503 `INSIGHT_UNAVAILABLE` si aucun
    fournisseur n'a pu répondre pour `horoscope`/`transits`.
    """
    if feature not in FEATURES:
        raise HTTPException(status_code=404, detail=f"Unknown feature '{feature}'")
    ctx = InsightContext(sign=sign, moon_sign=moon_sign, nakshatra=nakshatra)
    result = await container.insights.get(feature, language, ctx)
    return result.model_dump(mode="json", by_alias=True)
