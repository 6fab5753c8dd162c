import os
import sys

from dotenv import load_dotenv
from groq import Groq
from pinecone import Pinecone

from doc_chat.exception import DocChatException
from doc_chat.logger import GLOBAL_LOGGER as log
from doc_chat.utils.config_loader import load_config


class ApiKeyManager:
    REQUIRED = ["PINECONE_API_KEY", "GROQ_API_KEY"]

    def __init__(self):
        load_dotenv()
        self.keys = {}

        for k in self.REQUIRED:
            if val := os.getenv(k):
                self.keys[k] = val
                log.info("Loaded %s from env", k)
            else:
                log.error("Missing required API key: %s", k)

        if len(self.keys) != len(self.REQUIRED):
            missing = [k for k in self.REQUIRED if k not in self.keys]
            raise DocChatException(f"Missing API keys: {', '.join(missing)}", sys)

    def get(self, key: str) -> str:
        return self.keys[key]


class ModelLoader:
    """
    Responsible for:
    - Loading and validating API keys
    - Loading the YAML config
    - Building the Pinecone client (vector index + inference embeddings)
    - Building the Groq client for the answering LLM
    """

    def __init__(self, config: dict | None = None):
        self.api_key_mgr = ApiKeyManager()
        self.config = config if config is not None else load_config()
        log.info("YAML config loaded | sections=%s", list(self.config.keys()))

    def section(self, name: str) -> dict:
        """Return one config section, empty when absent."""
        return self.config.get(name) or {}

    def load_pinecone(self) -> Pinecone:
        """
        Pinecone client used both for the serverless index and for the
        hosted embedding model (``pc.inference``).
        """
        try:
            client = Pinecone(api_key=self.api_key_mgr.get("PINECONE_API_KEY"))
            log.info(
                "Pinecone client ready | embedding_model=%s",
                self.section("embedding_model").get("model_name"),
            )
            return client
        except Exception as e:
            log.error("Error creating Pinecone client | error=%s", str(e))
            raise DocChatException("Failed to create Pinecone client", e) from e

    def load_llm(self, role: str = "rag") -> Groq:
        """
        Load the Groq client for the configured LLM role.
        Args:
            role: key under ``llm`` in config.yaml (only "rag" today)
        """
        llm_config = self.section("llm")
        if role not in llm_config:
            log.error("LLM role not found in config | role=%s", role)
            raise ValueError(f"LLM role '{role}' not found in config")

        role_config = llm_config[role]
        provider = role_config.get("provider", "groq")
        if provider != "groq":
            raise ValueError(f"Unsupported provider {provider}")

        log.info(
            "Loading LLM | role=%s | model=%s", role, role_config.get("model_name")
        )
        return Groq(
            api_key=self.api_key_mgr.get("GROQ_API_KEY"),
            timeout=role_config.get("timeout"),
        )
