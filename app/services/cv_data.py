from pathlib import Path
import json
import logging

from app.config import DATA_DIR
from app.models.schema import CVData

logger = logging.getLogger(__name__)

CV_PATH = DATA_DIR / "cv.json"


def load_cv_data(path: Path = CV_PATH) -> CVData:
	"""Read and validate the published CV document."""
	data = json.loads(path.read_text(encoding="utf-8"))
	cv = CVData.model_validate(data)
	logger.info("cv_data: loaded path=%s roles=%d projects=%d", path, len(cv.experience), len(cv.projects))
	return cv
