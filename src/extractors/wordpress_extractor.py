import csv
import html
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from urllib.parse import urlparse

from src.migrators.ghost_migrator import CREATED_AT_FORMAT

WP_NS = '{http://wordpress.org/export/1.2/}'
CONTENT_NS = '{http://purl.org/rss/1.0/modules/content/}'
EXCERPT_NS = '{http://wordpress.org/export/1.2/excerpt/}'

_WP_DATE_FORMATS = (
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%d/%m/%Y %H:%M',
    '%Y-%m-%d',
)


def slugify(value):
    text = html.unescape(value or '').strip().lower()
    out = []
    prev_dash = False
    for ch in text:
        if ch.isalnum():
            out.append(ch)
            prev_dash = False
        else:
            if not prev_dash:
                out.append('-')
            prev_dash = True
    slug = ''.join(out).strip('-')
    return slug[:191]


def _parse_taxonomy_field(field_value):
    """Analisa um campo de taxonomia (Tags) de uma fonte CSV.

    Esta função processa uma string contendo itens separados por vírgulas ou pipes,
    limpando espaços em branco e decodificando entidades HTML.

    Args:
        field_value (str): O valor bruto do campo.

    Returns:
        list: Uma lista de itens limpos e com entidades HTML decodificadas.
    """
    if not field_value:
        return []
    items = [html.unescape(item.strip()) for item in re.split(r'[,|]', field_value) if item.strip()]
    return items


def _join_tag_slugs(labels):
    """Ghost tags are looked up by slug; the pipeline expects them comma-joined."""
    slugs = []
    for label in labels:
        slug = slugify(label)
        if slug and slug not in slugs:
            slugs.append(slug)
    return ','.join(slugs)


def normalize_wp_date(value):
    """Converte uma data do WordPress para o formato ``YYYY-MM-DD HH:MM:SS``.

    Valores não reconhecidos são devolvidos sem alteração, para que o pipeline
    os rejeite e registre o erro.
    """
    if not value:
        return value
    text = value.strip()
    for fmt in _WP_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime(CREATED_AT_FORMAT)
        except ValueError:
            continue
    # RSS pubDate, e.g. "Mon, 15 Jan 2024 10:30:00 +0000"
    try:
        parsed = parsedate_to_datetime(text)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.strftime(CREATED_AT_FORMAT)
    except (TypeError, ValueError):
        return value


def ghost_image_path(image_url):
    """Maps a WordPress uploads URL to the path Ghost serves content images from."""
    if not image_url:
        return None
    path = urlparse(image_url).path
    marker = '/wp-content/uploads'
    if marker in path:
        return '/content/images' + path.split(marker, 1)[1]
    return path or None


def extract_posts_from_csv(file_path):
    """Extrai e normaliza posts a partir de um arquivo de exportação CSV do WordPress.

    Esta função lê um arquivo CSV exportado do WordPress e converte cada linha
    em um dicionário aceito por ``PostPayload``.

    Args:
        file_path (str): O caminho para o arquivo CSV.

    Returns:
        list: Uma lista de dicionários, um por post.

    Raises:
        FileNotFoundError: Se o arquivo CSV especificado não for encontrado.
        ValueError: Se ocorrer um erro durante o processamento de uma linha do CSV.
    """
    posts = []
    with open(file_path, mode='r', encoding='utf-8') as csvfile:
        reader = csv.DictReader(csvfile)
        for row_num, row in enumerate(reader, start=2):  # Start at 2 because header is row 1
            try:
                featured_image_url = row.get('Image URL', '') or ''
                if featured_image_url:
                    featured_image_url = featured_image_url.split('|')[0]

                created_at = normalize_wp_date(row.get('Date'))
                post = {
                    'title': row.get('Title') or '',
                    'slug': row.get('Slug') or slugify(row.get('Title')),
                    'html': row.get('Content') or '',
                    'excerpt': row.get('Excerpt') or '',
                    'created_at': created_at,
                    'updated_at': normalize_wp_date(row.get('Post Modified Date')) or created_at,
                    'author_id': row.get('Author ID'),
                    'image_url': ghost_image_path(featured_image_url),
                    'tags': _join_tag_slugs(_parse_taxonomy_field(row.get('Tags', ''))),
                }
                posts.append(post)
            except Exception as e:
                raise ValueError(f"Error processing row {row_num} in {file_path}: {e}") from e
    return posts


def extract_posts_from_xml(file_path):
    """Extrai posts a partir de um arquivo de exportação XML (WXR) do WordPress.

    Autores são resolvidos pelo login (``dc:creator``) usando os elementos
    ``wp:author`` do canal; a imagem destacada é encontrada pelo
    ``_thumbnail_id`` do post. Itens que não são posts (anexos, páginas) são
    ignorados.

    Args:
        file_path (str): O caminho para o arquivo XML.

    Returns:
        list: Uma lista de dicionários, um por post.

    Raises:
        FileNotFoundError: Se o arquivo XML especificado não for encontrado.
        ET.ParseError: Se ocorrer um erro durante a análise do XML.
        ValueError: Se ocorrer um erro durante o processamento de um item do XML.
    """
    tree = ET.parse(file_path)
    root = tree.getroot()

    author_ids = {}
    for author in root.iter(f'{WP_NS}author'):
        login = author.findtext(f'{WP_NS}author_login')
        if login:
            author_ids[login] = author.findtext(f'{WP_NS}author_id')

    items = root.findall('.//item')
    attachments = {
        item.findtext(f'{WP_NS}post_id'): item.findtext(f'{WP_NS}attachment_url')
        for item in items
        if item.findtext(f'{WP_NS}post_type') == 'attachment'
    }

    posts = []
    for item in items:
        if (item.findtext(f'{WP_NS}post_type') or 'post') != 'post':
            continue
        post_id = item.findtext(f'{WP_NS}post_id') or 'unknown'
        try:
            slug = item.findtext(f'{WP_NS}post_name')
            if not slug:
                permalink = item.findtext('link') or ''
                path = urlparse(permalink).path
                slug = path.strip('/').split('/')[-1] if path else slugify(item.findtext('title'))

            thumbnail_id = None
            for meta in item.findall(f'{WP_NS}postmeta'):
                if meta.findtext(f'{WP_NS}meta_key') == '_thumbnail_id':
                    thumbnail_id = meta.findtext(f'{WP_NS}meta_value')

            creator = item.findtext('{http://purl.org/dc/elements/1.1/}creator') or ''
            tags = [
                tag.get('nicename') or tag.text
                for tag in item.findall('category[@domain="post_tag"]')
                if tag.get('nicename') or tag.text
            ]
            created_at = normalize_wp_date(item.findtext(f'{WP_NS}post_date') or item.findtext('pubDate'))

            posts.append({
                'title': item.findtext('title') or '',
                'slug': slug,
                'html': item.findtext(f'{CONTENT_NS}encoded') or '',
                'excerpt': item.findtext(f'{EXCERPT_NS}encoded') or '',
                'created_at': created_at,
                'updated_at': normalize_wp_date(item.findtext(f'{WP_NS}post_modified')) or created_at,
                'author_id': author_ids.get(creator, creator),
                'image_url': ghost_image_path(attachments.get(thumbnail_id)),
                'tags': _join_tag_slugs(tags),
            })
        except Exception as e:
            raise ValueError(f"Error processing item with ID {post_id} in {file_path}: {e}") from e
    return posts
