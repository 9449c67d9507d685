import logging
import os
import urllib.request
from pathlib import Path

from .config import settings
from .core.face_detection import CAFFEMODEL_NAME, PROTOTXT_NAME

logger = logging.getLogger(__name__)

# Model files URLs
MODEL_FILES = {
    PROTOTXT_NAME: 'https://raw.githubusercontent.com/opencv/opencv/master/samples/dnn/face_detector/deploy.prototxt',
    CAFFEMODEL_NAME: 'https://raw.githubusercontent.com/opencv/opencv_3rdparty/dnn_samples_face_detector_20170830/res10_300x300_ssd_iter_140000.caffemodel'
}


def download_file(url: str, filename: Path) -> None:
    logger.info(f"Downloading {filename.name}...")
    urllib.request.urlretrieve(url, filename)
    logger.info(f"Downloaded {filename}")


def download_models(models_dir: Path = None) -> bool:
    """Fetch the SSD face detector weights into ``models_dir``.

    Files already present are left alone. Returns False if any download
    failed.
    """
    models_dir = Path(models_dir or settings.MODELS_DIR)
    os.makedirs(models_dir, exist_ok=True)

    for filename, url in MODEL_FILES.items():
        filepath = models_dir / filename
        if filepath.exists():
            continue
        try:
            download_file(url, filepath)
        except OSError as e:
            logger.error(f"Error downloading {filename}: {str(e)}")
            if filepath.exists():
                filepath.unlink()
            logger.error(
                f"Please download the model files manually and place them in {models_dir}: "
                f"{', '.join(MODEL_FILES)}"
            )
            return False
    return True


if __name__ == "__main__":
    logging.basicConfig(level=settings.get_log_level())
    raise SystemExit(0 if download_models() else 1)
