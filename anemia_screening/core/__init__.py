from .utils import (
    read_upload,
    save_upload,
    generate_assessment_code,
    delete_file,
    get_file_path,
    init_folders
)

from .dependencies import get_model_manager

__all__ = [
    "read_upload",
    "save_upload",
    "generate_assessment_code",
    "delete_file",
    "get_file_path",
    "init_folders",
    "get_model_manager"
]
