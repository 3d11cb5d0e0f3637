# src/poselog/utils/resources.py
import os
import sys
from typing import List

MODELS_DIR = "models"


def model_search_dirs() -> List[str]:
    """Where model files are looked up: PyInstaller bundle, cwd, then the project root."""
    dirs = []
    meipass = getattr(sys, "_MEIPASS", None)
    if meipass:
        dirs.append(os.path.join(meipass, MODELS_DIR))
    dirs.append(os.path.join(os.getcwd(), MODELS_DIR))
    # src/poselog/utils -> project root
    here = os.path.abspath(os.path.dirname(__file__))
    dirs.append(os.path.join(here, "..", "..", "..", MODELS_DIR))
    return [os.path.abspath(d) for d in dirs]


def model_path(filename: str) -> str:
    """Absolute path of a bundled model file, e.g. 'movenet_singlepose_lightning.tflite'."""
    candidates = [os.path.join(d, filename) for d in model_search_dirs()]
    for p in candidates:
        if os.path.exists(p):
            return p
    # missing: the last guess still shows up in the load error
    return candidates[-1]
