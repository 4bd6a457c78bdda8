"""summaries_api views: PDF download, preview, regeneration and status of AI summaries."""

import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from summaries_api import services
from summaries_api.serializers import GroupSummarySerializer, SessionSummarySerializer

logger = logging.getLogger('summaries_api')


def _pdf_response(data: bytes, filename: str) -> HttpResponse:
    response = HttpResponse(data, content_type='application/pdf')
    response['Content-Disposition'] = f'inline; filename="{filename}"'
    response['Content-Length'] = str(len(data))
    return response


class SessionSummaryPdfView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        data = services.session_summary_pdf(session_id, request.user)
        return _pdf_response(data, f'session-summary-{session_id}.pdf')


class SessionSummaryPreviewView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        summary = services.get_session_summary(session_id, request.user)
        return Response(SessionSummarySerializer(summary).data, status=status.HTTP_200_OK)


class SessionSummaryGenerateView(APIView):
    """Re-run the summary over the session transcript (400 when it has no messages)."""
    permission_classes = [IsAuthenticated]

    def post(self, request, session_id):
        summary, pdf_url = services.regenerate_session_summary(session_id, request.user)
        logger.info(f"[SessionSummaryGenerateView] Summary regenerated for {session_id} by {request.user.user_id}")
        return Response(
            {'summary': SessionSummarySerializer(summary).data, 'pdf_url': pdf_url},
            status=status.HTTP_201_CREATED,
        )


class SessionSummaryInfoView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, session_id):
        return Response(services.session_summary_info(session_id, request.user), status=status.HTTP_200_OK)


class GroupSummaryPdfView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        data = services.group_summary_pdf(group_id, request.user)
        return _pdf_response(data, f'group-summary-{group_id}.pdf')


class GroupSummaryPreviewView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        summary = services.get_group_summary(group_id, request.user)
        return Response(GroupSummarySerializer(summary).data, status=status.HTTP_200_OK)


class GroupSummaryGenerateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, group_id):
        summary, pdf_url = services.regenerate_group_summary(group_id, request.user)
        logger.info(f"[GroupSummaryGenerateView] Summary regenerated for {group_id} by {request.user.user_id}")
        return Response(
            {'summary': GroupSummarySerializer(summary).data, 'pdf_url': pdf_url},
            status=status.HTTP_201_CREATED,
        )


class GroupSummaryInfoView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, group_id):
        return Response(services.group_summary_info(group_id, request.user), status=status.HTTP_200_OK)
