"""
Content language helpers.

Translatable text is stored in a base field holding the Tajik text (``name``)
plus one column per additional language (``name_ru``, ``name_en``).
"""
from django.conf import settings


def content_languages():
    return tuple(settings.CONTENT_LANGUAGES)


def default_language():
    return settings.DEFAULT_CONTENT_LANGUAGE


def normalize_language(value):
    """Map a language tag such as 'ru-RU' or 'tg' onto a content language"""
    if not value:
        return None
    code = value.strip().lower().replace('_', '-').split('-')[0]
    # ISO 639-1 code for Tajik is "tg"; the site uses "tj"
    if code == 'tg':
        code = 'tj'
    return code if code in content_languages() else None


def resolve_language(request):
    """
    Pick the content language for a request: ``?lang=`` wins, then the first
    supported entry of Accept-Language, then the default language.
    """
    if request is None:
        return default_language()

    params = getattr(request, 'query_params', None) or getattr(request, 'GET', {})
    language = normalize_language(params.get('lang'))
    if language:
        return language

    accept = request.META.get('HTTP_ACCEPT_LANGUAGE', '')
    for part in accept.split(','):
        language = normalize_language(part.split(';')[0])
        if language:
            return language
    return default_language()


def translated_field_names(field):
    """['name', 'name_ru', 'name_en'] for field 'name'"""
    names = [field]
    for language in content_languages():
        if language != default_language():
            names.append(f'{field}_{language}')
    return names


def localized_value(obj, field, language):
    """Return ``field`` in ``language``, falling back to the base field"""
    if language and language != default_language():
        value = getattr(obj, f'{field}_{language}', None)
        if value:
            return value
    return getattr(obj, field, None)
