"""
Client for the external text-generation service (Google Gemini REST API).

The engine treats every response as opaque: risk and opinion calls return
free text, anomaly detection returns a list of {id, issue} records. Any
failure degrades to a fallback string or an empty list; nothing raised here
reaches the engine.
"""
import json
import logging
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from audit_engine.canonical_fields import CanonicalField
from audit_engine.errors import CollaboratorError
from audit_engine.icq import ICQQuestion
from audit_engine.reconcile import is_opening_balance
from audit_engine.schemas import frame_to_records
from config import AIConfig

logger = logging.getLogger(__name__)

RISK_FALLBACK = "Gagal menganalisis risiko."
RISK_ERROR_FALLBACK = "Error connecting to AI service."
OPINION_FALLBACK = "Gagal membuat opini."
OPINION_ERROR_FALLBACK = "Gagal membuat opini karena error koneksi."

ANOMALY_RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "issue": {"type": "STRING"},
        },
    },
}


class GeminiClient:
    """
    Thin request/response wrapper around the generateContent endpoint.

    No retries and no cancellation: a call either returns text or the
    public methods fall back.
    """

    def __init__(self, ai_config: AIConfig, session: Optional[requests.Session] = None):
        self.config = ai_config
        self.http = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def generate(self, prompt: str, generation_config: Optional[Dict[str, Any]] = None) -> str:
        """
        Send one prompt and return the concatenated response text.

        Raises:
            CollaboratorError: Missing key, transport failure, non-2xx status,
                or a response without text
        """
        if not self.config.is_configured():
            raise CollaboratorError("API key not found")

        body: Dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        if generation_config:
            body["generationConfig"] = generation_config

        headers = {
            'x-goog-api-key': self.config.api_key,
            'Content-Type': 'application/json',
        }

        logger.debug(f"[AI] POST {self.endpoint} ({len(prompt)} prompt chars)")
        try:
            response = self.http.post(
                self.endpoint,
                json=body,
                headers=headers,
                timeout=self.config.timeout
            )
        except requests.exceptions.RequestException as e:
            raise CollaboratorError(f"Network error calling AI service: {e}") from e

        if response.status_code != 200:
            raise CollaboratorError(
                f"AI service returned {response.status_code}: {response.text[:500]}"
            )

        try:
            payload = response.json()
            parts = payload["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CollaboratorError(f"Unexpected AI response shape: {e}") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
        logger.debug(f"[AI] Response text: {text[:200]}")
        return text

    # ==================== Audit calls ====================

    def analyze_internal_controls(self, questions: List[ICQQuestion]) -> str:
        """Control-risk paragraph from the ICQ answers."""
        icq_data = [q.to_prompt_dict() for q in questions]
        prompt = f"""
        Sebagai Auditor Senior, analisis jawaban Kuesioner Pengendalian Internal (ICQ) berikut untuk siklus Kas.

        Data ICQ:
        {json.dumps(icq_data, indent=2, ensure_ascii=False)}

        Berikan penilaian singkat (maksimal 1 paragraf) mengenai "Control Risk" (Risiko Pengendalian).
        Apakah High, Medium, atau Low? Jelaskan alasannya berdasarkan jawaban "No" yang berisiko tinggi.
        """
        try:
            return self.generate(prompt) or RISK_FALLBACK
        except CollaboratorError as e:
            logger.error(f"[AI] Risk analysis failed: {e}")
            return RISK_ERROR_FALLBACK

    def detect_anomalies(self, ledger: pd.DataFrame) -> List[Dict[str, str]]:
        """
        Suspicious ledger entries as [{id, issue}], opening balance excluded.

        Parse failures and service errors yield an empty list.
        """
        transactions = [
            record for record in frame_to_records(ledger)
            if not is_opening_balance(record.get(CanonicalField.DESCRIPTION.value))
        ]
        prompt = f"""
        Analisis daftar transaksi buku besar kas berikut untuk mendeteksi potensi anomali atau fraud (kecurangan).
        Fokus pada:
        1. Nilai yang tidak biasa (round numbers berulang atau angka unik seperti 9999).
        2. Transaksi di hari libur atau akhir tahun yang mencurigakan (Window Dressing).
        3. Deskripsi yang tidak jelas.

        Data Transaksi:
        {json.dumps(transactions, indent=2, ensure_ascii=False)}

        Outputkan dalam format JSON list temuan:
        [{{ "id": "ID_Transaksi", "issue": "Penjelasan singkat kecurigaan" }}]
        """
        try:
            text = self.generate(prompt, {
                "responseMimeType": "application/json",
                "responseSchema": ANOMALY_RESPONSE_SCHEMA,
            })
        except CollaboratorError as e:
            logger.error(f"[AI] Anomaly detection failed: {e}")
            return []

        return parse_anomalies(text)

    def generate_audit_opinion(self, findings: List[Dict[str, Any]], summary: Dict[str, Any]) -> str:
        """Draft conclusion paragraph from the findings plus the lead-schedule summary."""
        context_findings = list(findings) + [summary]
        prompt = f"""
        Berdasarkan temuan audit berikut pada akun Kas & Setara Kas:
        {json.dumps(context_findings, indent=2, ensure_ascii=False)}

        Buatlah draft paragraf kesimpulan audit untuk Kertas Kerja Audit.
        Nyatakan apakah saldo kas disajikan secara wajar dalam semua hal yang material.
        Gunakan bahasa Indonesia formal standar audit.
        """
        try:
            return self.generate(prompt) or OPINION_FALLBACK
        except CollaboratorError as e:
            logger.error(f"[AI] Opinion drafting failed: {e}")
            return OPINION_ERROR_FALLBACK


def parse_anomalies(text: Optional[str]) -> List[Dict[str, str]]:
    """
    Parse the anomaly JSON array; anything unusable becomes [].

    Entries missing `id` or `issue` are dropped.
    """
    if not text:
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"[AI] Anomaly response is not JSON: {e}")
        return []
    if not isinstance(data, list):
        logger.error(f"[AI] Anomaly response is not a list: {type(data).__name__}")
        return []

    anomalies = []
    for item in data:
        if isinstance(item, dict) and item.get("id") and item.get("issue"):
            anomalies.append({"id": str(item["id"]), "issue": str(item["issue"])})
    return anomalies


def get_ai_client(ai_config: Optional[AIConfig] = None) -> GeminiClient:
    """Client built from the global configuration."""
    if ai_config is None:
        from config import config
        ai_config = config.ai
    return GeminiClient(ai_config)
