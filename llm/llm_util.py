import json
import time
from typing import Optional

from langchain_core.prompts import PromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from util.logging_util import setup_logger, log_llm_interaction
from util.secrets import get_gemini_api_key

logger = setup_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"


def get_llm_response(
    template_path: str,
    params: dict,
    model_name: str = DEFAULT_MODEL,
    temperature: Optional[float] = None,
) -> str:
    """
    Generates a response from the LLM based on a Jinja2 template file and parameters.

    Args:
        template_path: The absolute path to the Jinja2 template file.
        params: A dictionary of parameters to populate the template.
        model_name: The name of the Gemini model to use.
        temperature: Optional sampling temperature; the model default is used when None.

    Returns:
        The string response from the LLM.
    """
    start_time = time.time()

    llm_kwargs = {"model": model_name, "google_api_key": get_gemini_api_key()}
    if temperature is not None:
        llm_kwargs["temperature"] = temperature
    llm = ChatGoogleGenerativeAI(**llm_kwargs)

    with open(template_path, "r") as f:
        template_content = f.read()

    prompt = PromptTemplate.from_template(template_content, template_format="jinja2")
    chain = prompt | llm

    response = chain.invoke(params)

    # Gemini returns content as a list of parts, extract the text
    response_content = response.content
    if isinstance(response_content, list):
        text_parts = [part.get('text', '') for part in response_content if isinstance(part, dict) and 'text' in part]
        response_content = ''.join(text_parts)

    duration_ms = (time.time() - start_time) * 1000
    log_llm_interaction(logger, template_path, params, response_content, model_name, duration_ms)

    return response_content


def parse_json_response(response: str) -> dict:
    """
    Parse a JSON object out of an LLM response.

    Handles markdown code fences and leading/trailing chatter around the
    object. Raises json.JSONDecodeError when no object can be decoded.
    """
    response = response.strip()
    if response.startswith("```"):
        lines = response.split("\n")
        response = "\n".join(lines[1:-1])

    start = response.find("{")
    end = response.rfind("}")
    if start != -1 and end > start:
        response = response[start:end + 1]

    return json.loads(response)
