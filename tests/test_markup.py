"""
Tests for the parsed-markup query surface.
"""

from site_audit.markup import Document, XmlDocument


XHTML_PAGE = """<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml" lang="fr">
<head><title>Chemise en lin</title></head>
<body><h1>Bonjour</h1><p>Une chemise légère.</p></body>
</html>
"""


class TestDocument:

    def test_xhtml_with_encoding_declaration(self):
        doc = Document.parse(XHTML_PAGE)
        assert doc.count("h1") == 1
        assert doc.text("title") == "Chemise en lin"
        assert doc.text("p") == "Une chemise légère."

    def test_declaration_after_byte_order_mark(self):
        doc = Document.parse("\ufeff" + XHTML_PAGE)
        assert doc.text("h1") == "Bonjour"

    def test_raw_markup_is_kept(self):
        assert Document.parse(XHTML_PAGE).html_length == len(XHTML_PAGE)

    def test_empty_input_is_empty_document(self):
        doc = Document.parse("   ")
        assert doc.tree is None
        assert doc.select("h1") == []


class TestXmlDocument:

    def test_namespaced_entries(self):
        sitemap = XmlDocument.parse(
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
            "<url><loc>https://shop.test/a</loc></url>"
            "</urlset>"
        )
        assert len(sitemap.entries("url")) == 1
