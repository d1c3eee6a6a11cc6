"""
Excel workbook export and import
Workbooks are built with pandas/openpyxl in memory and returned as bytes
"""
import logging
import os
from io import BytesIO
from typing import Dict, List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from models import AnalysisReport, Comment, SheetComment, VideoData
from services.exceptions import SpreadsheetFormatError
from utils.helpers import format_date, get_epoch_millis, sanitize_filename, strip_html_tags

logger = logging.getLogger(__name__)

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

COMMENTS_SHEET = 'YouTube Comments'
TRANSLATION_SHEET = 'Translated Comments'
CLASSIFICATION_SHEET = 'Classified Comments'
ANALYSIS_SHEET = 'Comment Analysis'
WORD_FREQUENCY_SHEET = 'Word Frequency'
SENTIMENT_SHEET = 'Sentiment Summary'
TOPIC_SHEET = 'Topic Distribution'

DATE_HEADER = 'Date'
AUTHOR_HEADER = 'Author'
TYPE_HEADER = 'Type'
REPLY_TO_HEADER = 'Reply To'
CONTENT_HEADER = 'Content'
LIKES_HEADER = 'Likes'
INDEX_HEADER = 'Index'
TRANSLATED_HEADER = 'Translated Content'
CATEGORY_HEADER = 'Category'
SENTIMENT_HEADER = 'Sentiment'
KEYWORDS_HEADER = 'Keywords'

COMMENT_TYPE = 'Comment'
REPLY_TYPE = 'Reply'
REPLY_INDENT = '    '

HEADER_SCAN_ROWS = 10
MAX_COLUMN_WIDTH = 60


def _normalize_header(value) -> str:
    return ''.join(str(value).split()).lower()


def _write_workbook(sheets: Dict[str, pd.DataFrame]) -> bytes:
    """Write DataFrames as sheets and size columns to their content"""
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
            worksheet = writer.sheets[sheet_name]
            # Comments such as "=))" must stay text, not formulas
            for row in worksheet.iter_rows(min_row=2):
                for cell in row:
                    if isinstance(cell.value, str) and cell.value.startswith('='):
                        cell.data_type = 's'
            for col_idx, column in enumerate(frame.columns, 1):
                longest = max([len(str(column))] + [len(str(value)) for value in frame[column]])
                worksheet.column_dimensions[get_column_letter(col_idx)].width = min(longest + 2, MAX_COLUMN_WIDTH)
    return buffer.getvalue()


def comments_filename(video_id: str) -> str:
    return f"youtube_comments_{video_id}_{get_epoch_millis()}.xlsx"


def result_filename(source_name: Optional[str], suffix: str) -> str:
    """Name a result workbook after the uploaded one, e.g. comments_translated.xlsx"""
    stem = os.path.splitext(os.path.basename(source_name or ''))[0]
    return f"{sanitize_filename(stem or 'comments')}_{suffix}.xlsx"


def comments_to_rows(comments: List[Comment]) -> List[Dict]:
    """Flatten parents and replies into spreadsheet rows"""
    rows = []
    for comment in comments:
        rows.append({
            DATE_HEADER: format_date(comment.published_at),
            AUTHOR_HEADER: comment.author,
            TYPE_HEADER: COMMENT_TYPE,
            REPLY_TO_HEADER: '',
            CONTENT_HEADER: strip_html_tags(comment.content),
            LIKES_HEADER: comment.like_count,
        })
        for reply in comment.replies:
            rows.append({
                DATE_HEADER: format_date(reply.published_at),
                AUTHOR_HEADER: reply.author,
                TYPE_HEADER: REPLY_TYPE,
                REPLY_TO_HEADER: comment.author,
                CONTENT_HEADER: REPLY_INDENT + strip_html_tags(reply.content),
                LIKES_HEADER: reply.like_count,
            })
    return rows


def export_comments_workbook(comments: List[Comment], video: VideoData):
    """Build the comment workbook, returns (bytes, filename)"""
    columns = [DATE_HEADER, AUTHOR_HEADER, TYPE_HEADER, REPLY_TO_HEADER, CONTENT_HEADER, LIKES_HEADER]
    frame = pd.DataFrame(comments_to_rows(comments), columns=columns)
    logger.info("Exporting %d rows for video %s", len(frame), video.video_id)
    return _write_workbook({COMMENTS_SHEET: frame}), comments_filename(video.video_id)


def _find_header(frame: pd.DataFrame, target: str):
    """Row and column of ``target`` within the first rows of a sheet"""
    for row_idx in range(min(HEADER_SCAN_ROWS, len(frame))):
        for col_idx, value in enumerate(frame.iloc[row_idx]):
            if _normalize_header(value) == target:
                return row_idx, col_idx
    return None


def read_sheet_comments(file, content_header=CONTENT_HEADER) -> List[SheetComment]:
    """Read comments back from an uploaded workbook.

    Every sheet is scanned for a header row holding ``content_header``.
    Rows below it become ``SheetComment`` objects whose index is the row
    offset from the header; rows with empty content are skipped but keep
    their position in the numbering. Date, author, type and translated
    columns are picked up when present.
    """
    try:
        sheets = pd.read_excel(file, sheet_name=None, header=None, dtype=str)
    except Exception as e:
        raise SpreadsheetFormatError(f"Could not read Excel file: {e}") from e

    target = _normalize_header(content_header)

    for sheet_name, frame in sheets.items():
        frame = frame.fillna('')
        location = _find_header(frame, target)
        if location is None:
            continue

        header_row, content_col = location
        headers = {_normalize_header(value): col for col, value in enumerate(frame.iloc[header_row])}

        def column(name):
            return headers.get(_normalize_header(name))

        date_col = column(DATE_HEADER)
        author_col = column(AUTHOR_HEADER)
        type_col = column(TYPE_HEADER)
        translated_col = column(TRANSLATED_HEADER)
        if translated_col == content_col:
            translated_col = None

        comments = []
        for row_idx in range(header_row + 1, len(frame)):
            row = frame.iloc[row_idx]
            content = str(row.iloc[content_col]).strip()
            if not content:
                continue

            def cell(col):
                return str(row.iloc[col]).strip() if col is not None else ''

            comments.append(SheetComment(
                index=row_idx - header_row - 1,
                content=content,
                date=cell(date_col),
                author=cell(author_col),
                comment_type=cell(type_col),
                translated_content=cell(translated_col),
            ))

        logger.info("Read %d comments from sheet '%s'", len(comments), sheet_name)
        return comments

    raise SpreadsheetFormatError(
        f'Column "{content_header}" not found. Sheets in file: {", ".join(map(str, sheets))}'
    )


def export_translation_workbook(rows: List[SheetComment]) -> bytes:
    frame = pd.DataFrame([{
        INDEX_HEADER: row.index + 1,
        DATE_HEADER: row.date,
        AUTHOR_HEADER: row.author,
        TYPE_HEADER: row.comment_type,
        CONTENT_HEADER: row.content,
        TRANSLATED_HEADER: row.translated_content,
    } for row in rows], columns=[INDEX_HEADER, DATE_HEADER, AUTHOR_HEADER, TYPE_HEADER,
                                 CONTENT_HEADER, TRANSLATED_HEADER])
    return _write_workbook({TRANSLATION_SHEET: frame})


def export_classification_workbook(rows: List[SheetComment], categories: List[str]) -> bytes:
    frame = pd.DataFrame([{
        INDEX_HEADER: row.index + 1,
        DATE_HEADER: row.date,
        AUTHOR_HEADER: row.author,
        CONTENT_HEADER: row.content,
        TRANSLATED_HEADER: row.translated_content,
        CATEGORY_HEADER: category,
    } for row, category in zip(rows, categories)], columns=[INDEX_HEADER, DATE_HEADER, AUTHOR_HEADER,
                                                          CONTENT_HEADER, TRANSLATED_HEADER, CATEGORY_HEADER])
    return _write_workbook({CLASSIFICATION_SHEET: frame})


def _distribution_frame(counts: Dict[str, int], label: str) -> pd.DataFrame:
    total = sum(counts.values())
    rows = [{
        label: name,
        'Count': count,
        'Percentage': f"{count / total * 100:.1f}%" if total else '0.0%',
    } for name, count in sorted(counts.items(), key=lambda kv: kv[1], reverse=True)]
    return pd.DataFrame(rows, columns=[label, 'Count', 'Percentage'])


def export_analysis_workbook(report: AnalysisReport) -> bytes:
    """Four-sheet analysis workbook: per comment, keywords, sentiment, topics"""
    comment_frame = pd.DataFrame([{
        INDEX_HEADER: comment.index + 1,
        DATE_HEADER: comment.date,
        AUTHOR_HEADER: comment.author,
        CONTENT_HEADER: comment.content,
        TRANSLATED_HEADER: comment.translated_content,
        CATEGORY_HEADER: result.category_name,
        SENTIMENT_HEADER: result.sentiment,
        KEYWORDS_HEADER: ', '.join(result.top_keywords),
    } for comment, result in zip(report.comments, report.results)],
        columns=[INDEX_HEADER, DATE_HEADER, AUTHOR_HEADER, CONTENT_HEADER, TRANSLATED_HEADER,
                 CATEGORY_HEADER, SENTIMENT_HEADER, KEYWORDS_HEADER])

    word_frame = pd.DataFrame(
        [{'Word': wf.word, 'Count': wf.count} for wf in report.word_frequency],
        columns=['Word', 'Count'],
    )

    return _write_workbook({
        ANALYSIS_SHEET: comment_frame,
        WORD_FREQUENCY_SHEET: word_frame,
        SENTIMENT_SHEET: _distribution_frame(report.sentiment_summary, SENTIMENT_HEADER),
        TOPIC_SHEET: _distribution_frame(report.topic_distribution, 'Topic'),
    })
