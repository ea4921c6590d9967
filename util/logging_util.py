import logging
import os
import sys

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _default_level() -> int:
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logger(name: str, level=None) -> logging.Logger:
    """
    Sets up a logger with consistent formatting.

    Args:
        name: Name of the logger (typically __name__ from the calling module)
        level: Logging level (default: LOG_LEVEL env var, else INFO)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = _default_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid adding handlers multiple times
    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(console_handler)

    return logger


def _truncate(text: str, limit: int = 200) -> str:
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def log_llm_interaction(logger: logging.Logger, template_path: str, params: dict,
                        response: str, model_name: str, duration_ms: float = None):
    """
    Logs an LLM interaction with all relevant details.

    Args:
        logger: Logger instance to use
        template_path: Path to the prompt template used
        params: Parameters passed to the template
        response: Response from the LLM
        model_name: Name of the model used
        duration_ms: Optional duration of the call in milliseconds
    """
    duration_str = f" ({duration_ms:.2f}ms)" if duration_ms else ""
    logger.info(f"LLM Request{duration_str} - Model: {model_name}")
    logger.debug(f"  Template: {template_path}")
    logger.debug(f"  Params: {params}")
    logger.info(f"  Response: {_truncate(response)}")


def log_pipeline_step(logger: logging.Logger, folder_name: str, step: str, **details):
    """
    Logs one step of the product pipeline for a single folder.

    Args:
        logger: Logger instance to use
        folder_name: Drive folder being processed
        step: Short step name (e.g. "vision", "publish")
        details: Extra key/value pairs to include in the line
    """
    detail_str = ", ".join(f"{key}={value}" for key, value in details.items())
    suffix = f" ({detail_str})" if detail_str else ""
    logger.info(f"[{folder_name}] {step}{suffix}")
