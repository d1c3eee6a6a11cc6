"""
API tests using the Flask test client, with services mocked
"""
from io import BytesIO
from unittest.mock import patch

import pytest

from models import AnalysisReport, AnalysisResult, VideoData, WordFrequency
from services.exceptions import CommentsDisabledError, QuotaExceededError
from utils.excel_utils import XLSX_MIMETYPE, export_comments_workbook

VIDEO = VideoData(video_id='abc123', title='Tây Du Ký', url='https://youtu.be/abc123',
                  total_comments=350, estimated_range='300-400')


@pytest.fixture
def youtube():
    with patch('routes.comment_routes.youtube_service') as mock_service:
        yield mock_service


@pytest.fixture
def analysis():
    with patch('routes.analysis_routes.analysis_service') as mock_service:
        mock_service.ai.is_available.return_value = True
        yield mock_service


class TestCommentRoutes:

    def test_video_details(self, client, youtube):
        youtube.get_video_details.return_value = {'title': 'Tây Du Ký', 'comment_count': 350}

        response = client.post('/api/videos/details', json={'url': 'https://youtu.be/abc123'})

        assert response.status_code == 200
        assert response.get_json()['video'] == {
            'video_id': 'abc123',
            'title': 'Tây Du Ký',
            'url': 'https://youtu.be/abc123',
            'total_comments': 350,
            'estimated_range': '300-400',
        }

    def test_video_details_invalid_url(self, client, youtube):
        response = client.post('/api/videos/details', json={'url': 'https://example.com'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Invalid YouTube URL', 'status_code': 400}
        youtube.get_video_details.assert_not_called()

    def test_fetch_comments_applies_filters(self, client, youtube, make_comment):
        comments = [make_comment('😀😀'), make_comment('Phim tuổi thơ của cả một thế hệ')]
        youtube.fetch_video_data.return_value = (VIDEO, comments)

        response = client.post('/api/comments', json={
            'url': 'https://youtu.be/abc123',
            'filters': {'removeEmojiOnly': True},
            'max_comments': 50,
        })

        data = response.get_json()
        assert response.status_code == 200
        assert data['video']['video_id'] == 'abc123'
        assert [c['content'] for c in data['comments']] == ['Phim tuổi thơ của cả một thế hệ']
        assert data['counts']['total_before_filter'] == 2
        assert data['counts']['total_after_filter'] == 1
        assert data['comments'][0]['preview'] == 'Phim tuổi thơ của cả một thế hệ'
        youtube.fetch_video_data.assert_called_once_with('https://youtu.be/abc123', 50)

    def test_preview_is_sanitized_but_content_stays_raw(self, client, youtube, make_comment):
        reply = make_comment('Tom &amp; Jerry<iframe src="x"></iframe> cũng hay')
        parent = make_comment('hay<script>alert(1)</script> quá đi bạn ơi', replies=[reply])
        youtube.fetch_video_data.return_value = (VIDEO, [parent])

        data = client.post('/api/comments', json={'url': 'https://youtu.be/abc123'}).get_json()

        comment = data['comments'][0]
        assert comment['content'] == 'hay<script>alert(1)</script> quá đi bạn ơi'
        assert comment['preview'] == 'hay quá đi bạn ơi'
        assert comment['replies'][0]['content'] == 'Tom &amp; Jerry<iframe src="x"></iframe> cũng hay'
        assert comment['replies'][0]['preview'] == 'Tom & Jerry cũng hay'

    def test_fetch_comments_caps_max_comments(self, client, youtube):
        youtube.fetch_video_data.return_value = (VIDEO, [])
        client.post('/api/comments', json={'url': 'https://youtu.be/abc123', 'max_comments': 10 ** 6})
        assert youtube.fetch_video_data.call_args.args[1] == 2000

    def test_fetch_comments_requires_url(self, client, youtube):
        response = client.post('/api/comments', json={})
        assert response.status_code == 400
        assert 'error' in response.get_json()

    def test_fetch_comments_rejects_bad_max_comments(self, client, youtube):
        response = client.post('/api/comments', json={'url': 'https://youtu.be/abc123', 'max_comments': 'lots'})
        assert response.status_code == 400

    def test_comments_disabled(self, client, youtube):
        youtube.fetch_video_data.side_effect = CommentsDisabledError('Comments are disabled for this video')

        response = client.post('/api/comments', json={'url': 'https://youtu.be/abc123'})

        assert response.status_code == 403
        assert response.get_json()['error'] == 'Comments are disabled for this video'

    def test_quota_exceeded(self, client, youtube):
        youtube.get_video_details.side_effect = QuotaExceededError('Invalid YouTube API key or quota exceeded')
        response = client.post('/api/videos/details', json={'url': 'https://youtu.be/abc123'})
        assert response.status_code == 403

    def test_refilter(self, client, make_comment):
        payload = [make_comment('hay', replies=[make_comment('Mình xem cả chục lần rồi')]).to_dict()]

        response = client.post('/api/comments/filter', json={
            'comments': payload,
            'filters': {'remove_generic_comments': True},
        })

        data = response.get_json()
        assert response.status_code == 200
        assert data['comments'][0]['reply_count'] == 1
        assert data['counts']['total_after_filter'] == 2

    def test_refilter_requires_list(self, client):
        response = client.post('/api/comments/filter', json={'comments': 'nope'})
        assert response.status_code == 400

    def test_export(self, client, make_comment):
        response = client.post('/api/comments/export', json={
            'video': VIDEO.to_dict(),
            'comments': [make_comment('Phim hay quá trời').to_dict()],
        })

        assert response.status_code == 200
        assert response.mimetype == XLSX_MIMETYPE
        assert 'youtube_comments_abc123_' in response.headers['Content-Disposition']

    def test_export_requires_video(self, client):
        response = client.post('/api/comments/export', json={'comments': []})
        assert response.status_code == 400


class TestAnalysisRoutes:

    @pytest.fixture
    def upload(self, make_comment):
        content, _ = export_comments_workbook(
            [make_comment('Phim hay quá', replies=[make_comment('Đồng ý luôn')])], VIDEO
        )
        return content

    def test_translate(self, client, analysis, upload):
        def translate(rows):
            for row in rows:
                row.translated_content = '译文'
            return rows

        analysis.translate_comments.side_effect = translate

        response = client.post('/api/analysis/translate',
                               data={'file': (BytesIO(upload), 'comments.xlsx')},
                               content_type='multipart/form-data')

        assert response.status_code == 200
        assert response.mimetype == XLSX_MIMETYPE
        assert 'comments_translated.xlsx' in response.headers['Content-Disposition']
        rows = analysis.translate_comments.call_args.args[0]
        assert [row.content for row in rows] == ['Phim hay quá', 'Đồng ý luôn']

    def test_classify(self, client, analysis, upload):
        analysis.classify_comments.return_value = ['A', 'B']

        response = client.post('/api/analysis/classify',
                               data={'file': (BytesIO(upload), 'comments.xlsx')},
                               content_type='multipart/form-data')

        assert response.status_code == 200
        assert 'comments_classified.xlsx' in response.headers['Content-Disposition']

    def test_analyze_json(self, client, analysis, upload):
        def analyze(rows):
            return AnalysisReport(
                comments=rows,
                results=[AnalysisResult(index=row.index, sentiment='positive', category_name='A',
                                        top_keywords=['评论']) for row in rows],
                word_frequency=[WordFrequency('好看', 2)],
                sentiment_summary={'positive': len(rows), 'neutral': 0, 'negative': 0},
                topic_distribution={'A': len(rows)},
            )

        analysis.analyze_comments.side_effect = analyze

        response = client.post('/api/analysis/analyze',
                               data={'file': (BytesIO(upload), 'comments.xlsx')},
                               content_type='multipart/form-data')

        data = response.get_json()
        assert response.status_code == 200
        assert len(data['comments']) == 2
        assert data['sentiment_summary']['positive'] == 2
        assert data['word_frequency'] == [{'word': '好看', 'count': 2}]

    def test_analyze_rejects_unknown_format(self, client, analysis, upload):
        response = client.post('/api/analysis/analyze',
                               data={'file': (BytesIO(upload), 'comments.xlsx'), 'format': 'pdf'},
                               content_type='multipart/form-data')
        assert response.status_code == 400

    def test_missing_file(self, client, analysis):
        response = client.post('/api/analysis/translate', data={}, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_wrong_extension(self, client, analysis):
        response = client.post('/api/analysis/translate',
                               data={'file': (BytesIO(b'a,b'), 'comments.csv')},
                               content_type='multipart/form-data')
        assert response.status_code == 400

    def test_missing_content_column(self, client, analysis):
        from openpyxl import Workbook

        workbook = Workbook()
        workbook.active.append(['Author', 'Likes'])
        buffer = BytesIO()
        workbook.save(buffer)
        buffer.seek(0)

        response = client.post('/api/analysis/translate',
                               data={'file': (buffer, 'comments.xlsx')},
                               content_type='multipart/form-data')

        assert response.status_code == 400
        assert 'Content' in response.get_json()['error']

    def test_ai_unavailable(self, client, analysis, upload):
        analysis.ai.is_available.return_value = False

        response = client.post('/api/analysis/classify',
                               data={'file': (BytesIO(upload), 'comments.xlsx')},
                               content_type='multipart/form-data')

        assert response.status_code == 503


class TestUtilityRoutes:

    def test_validate_url(self, client):
        data = client.post('/validate_url', json={'url': 'https://youtu.be/abc123'}).get_json()
        assert data['is_valid'] is True
        assert data['video_id'] == 'abc123'

    def test_validate_invalid_url(self, client):
        data = client.post('/validate_url', json={'url': 'hello'}).get_json()
        assert data['is_valid'] is False

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] in ('healthy', 'degraded')

    def test_unknown_route(self, client):
        response = client.get('/nope')
        assert response.status_code == 404
        assert response.get_json()['status_code'] == 404
