import logging

from .errors import StructuralAbsence
from .extraction import to_soup
from .records import ExtractionResult
from .scrapers import SCRAPERS
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)

NO_ACTIVE_TAB = "No active clinical or animals tab found"


def extract_lab_trends(source, settings: ExtractionSettings | None = None) -> ExtractionResult:
    """
    Extract lab observations from one page snapshot (HTML text or parsed tree).
    Never raises: missing page regions and unexpected failures come back as
    ``ok=False`` results carrying a readable reason.
    """
    settings = settings or ExtractionSettings()
    try:
        soup = to_soup(source)
        for scraper_cls in SCRAPERS:
            scraper = scraper_cls(settings)
            container = scraper.find_container(soup)
            if container is not None:
                break
        else:
            raise StructuralAbsence(NO_ACTIVE_TAB)
        result = scraper.scrape(container)
    except StructuralAbsence as e:
        logger.info("Extraction stopped: %s", e.reason)
        return ExtractionResult.failure(e.reason)
    except Exception as e:
        logger.exception("Lab trend extraction failed")
        return ExtractionResult.failure(str(e) or e.__class__.__name__)

    for w in result.warnings:
        logger.debug("parse warning: %s", w)
    return result
