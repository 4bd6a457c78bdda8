"""Chat-completion calls that produce session and group summaries.

One request per summary, no retries. Any failure, including a missing API key
or an empty completion, surfaces as ``SummaryGenerationError``.
"""

import logging
from typing import List

from django.conf import settings
from openai import OpenAI

from peerconnect_server.exceptions import InternalError
from summaries_api.parsing import GroupSummaryData, SessionSummaryData, parse_group_summary, parse_session_summary

logger = logging.getLogger('summaries_api.ai_client')

SESSION_SYSTEM_PROMPT = (
    'You are a professional counselor and therapist. Analyze the conversation and provide a structured '
    'summary focusing on key points, emotional tone, action items, and suggested resources. Be empathetic '
    'and professional in your analysis.'
)
GROUP_SYSTEM_PROMPT = (
    'You are a professional group facilitator and counselor. Analyze the group discussion and provide a '
    'structured summary focusing on topics covered, group sentiment, and recommended resources. Be '
    'supportive and constructive in your analysis.'
)


class SummaryGenerationError(InternalError):
    default_detail = 'AI summarization failed.'
    default_code = 'summary_generation_failed'


def build_session_prompt(messages: List[str]) -> str:
    conversation = '\n'.join(messages)
    return (
        'Please analyze the following counseling session conversation and provide a structured summary '
        'in the following format:\n\n'
        'KEY POINTS:\n- [List 3-5 key points discussed]\n\n'
        'EMOTIONAL TONE:\n[Describe the overall emotional tone of the session - e.g., "The session had a '
        'supportive and hopeful tone, with moments of vulnerability and determination"]\n\n'
        'ACTION ITEMS:\n- [List specific action items or next steps discussed]\n\n'
        'SUGGESTED RESOURCES:\n- [List 2-3 relevant resources, articles, or tools that could be helpful]\n\n'
        f'Conversation:\n{conversation}\n\n'
        'Please provide the summary in the exact format specified above.'
    )


def build_group_prompt(messages: List[str]) -> str:
    discussion = '\n'.join(messages)
    return (
        'Please analyze the following group discussion and provide a structured summary in the following '
        'format:\n\n'
        'TOPICS COVERED:\n- [List 3-5 main topics discussed]\n\n'
        'GROUP SENTIMENT:\n[Describe the overall mood and sentiment of the group - e.g., "The group showed '
        'strong support and engagement, with a collaborative and encouraging atmosphere"]\n\n'
        'RECOMMENDED RESOURCES:\n- [List 2-3 relevant resources, articles, or tools that could benefit the '
        'group]\n\n'
        f'Discussion:\n{discussion}\n\n'
        'Please provide the summary in the exact format specified above.'
    )


def complete(system_prompt: str, prompt: str) -> str:
    api_key = getattr(settings, 'OPENAI_API_KEY', '')
    if not api_key:
        raise SummaryGenerationError('AI summarization failed: OpenAI API key not configured')
    try:
        client = OpenAI(api_key=api_key)
        completion = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': prompt},
            ],
            temperature=getattr(settings, 'OPENAI_TEMPERATURE', 0.7),
            max_tokens=getattr(settings, 'OPENAI_MAX_TOKENS', 1000),
        )
        text = completion.choices[0].message.content if completion.choices else None
    except Exception as e:
        logger.error(f"[ai_client] Completion request failed: {e}")
        raise SummaryGenerationError(f'AI summarization failed: {e}') from e
    if not text:
        raise SummaryGenerationError('AI summarization failed: No response from OpenAI')
    return text


def generate_session_summary(messages: List[str]) -> SessionSummaryData:
    logger.info(f"[ai_client] Generating session summary from {len(messages)} messages")
    return parse_session_summary(complete(SESSION_SYSTEM_PROMPT, build_session_prompt(messages)))


def generate_group_summary(messages: List[str]) -> GroupSummaryData:
    logger.info(f"[ai_client] Generating group summary from {len(messages)} messages")
    return parse_group_summary(complete(GROUP_SYSTEM_PROMPT, build_group_prompt(messages)))
