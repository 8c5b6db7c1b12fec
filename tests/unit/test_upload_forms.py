"""Tests for upload form parsing."""
import pytest

from attachkit.core.exceptions import InvalidForm
from attachkit.core.upload import FormV2, FormV3, parse_form_v2, parse_form_v3


class TestParseFormV3:
    """Test suite for v3 form parsing."""
    
    def test_parse_valid_form(self, form_v3_data):
        """Test valid form keeps key, cdn and location unchanged."""
        form = parse_form_v3(form_v3_data)
        
        assert isinstance(form, FormV3)
        assert form.cdn_key == 'xyzCdnKey42'
        assert form.cdn_number == 2
        assert form.signed_upload_location == form_v3_data['signedUploadLocation']
        assert form.headers == form_v3_data['headers']
    
    def test_empty_headers_allowed(self, form_v3_data):
        """Test an empty header mapping is valid."""
        form_v3_data['headers'] = {}
        
        assert parse_form_v3(form_v3_data).headers == {}
    
    @pytest.mark.parametrize('field', ['key', 'cdn', 'signedUploadLocation', 'headers'])
    def test_missing_field(self, form_v3_data, field):
        """Test every required field is checked."""
        del form_v3_data[field]
        
        with pytest.raises(InvalidForm):
            parse_form_v3(form_v3_data)
    
    @pytest.mark.parametrize('field', ['key', 'signedUploadLocation'])
    def test_empty_string_field(self, form_v3_data, field):
        """Test empty strings are rejected, not defaulted."""
        form_v3_data[field] = ''
        
        with pytest.raises(InvalidForm):
            parse_form_v3(form_v3_data)
    
    @pytest.mark.parametrize('cdn', [0, -1, '2', 2.5, True, None])
    def test_invalid_cdn(self, form_v3_data, cdn):
        """Test cdn must be a positive integer."""
        form_v3_data['cdn'] = cdn
        
        with pytest.raises(InvalidForm):
            parse_form_v3(form_v3_data)
    
    def test_non_string_header_value(self, form_v3_data):
        """Test header values must be strings."""
        form_v3_data['headers'] = {'Content-Length': 12}
        
        with pytest.raises(InvalidForm):
            parse_form_v3(form_v3_data)
    
    @pytest.mark.parametrize('raw', [None, [], 'form', 42])
    def test_not_a_mapping(self, raw):
        """Test non-object responses are rejected."""
        with pytest.raises(InvalidForm):
            parse_form_v3(raw)


class TestParseFormV2:
    """Test suite for v2 form parsing."""
    
    def test_parse_valid_form(self, form_v2_data):
        """Test parsing a complete form."""
        form = parse_form_v2(form_v2_data)
        
        assert isinstance(form, FormV2)
        assert form.key == 'attachments/1234567890'
        assert form.attachment_id == 1234567890
        assert form.attachment_id_string == '1234567890'
    
    def test_attachment_id_optional(self, form_v2_data):
        """Test attachment id may be absent."""
        del form_v2_data['attachmentId']
        del form_v2_data['attachmentIdString']
        
        form = parse_form_v2(form_v2_data)
        
        assert form.attachment_id is None
    
    @pytest.mark.parametrize('attachment_id', [0, -5, 'abc', False])
    def test_attachment_id_must_be_positive(self, form_v2_data, attachment_id):
        """Test present attachment id must be a positive integer."""
        form_v2_data['attachmentId'] = attachment_id
        
        with pytest.raises(InvalidForm):
            parse_form_v2(form_v2_data)
    
    @pytest.mark.parametrize('field', [
        'acl', 'key', 'policy', 'algorithm', 'credential', 'date', 'signature'
    ])
    def test_missing_field(self, form_v2_data, field):
        """Test every required field is checked."""
        del form_v2_data[field]
        
        with pytest.raises(InvalidForm):
            parse_form_v2(form_v2_data)
    
    @pytest.mark.parametrize('field', ['acl', 'signature'])
    def test_empty_field(self, form_v2_data, field):
        """Test empty fields are rejected."""
        form_v2_data[field] = ''
        
        with pytest.raises(InvalidForm):
            parse_form_v2(form_v2_data)
    
    def test_multipart_field_order(self, form_v2_data):
        """Test multipart fields come in the canonical order."""
        form = parse_form_v2(form_v2_data)
        
        names = [name for name, _ in form.multipart_fields()]
        
        assert names == [
            'key', 'acl', 'x-amz-algorithm', 'x-amz-credential',
            'x-amz-date', 'policy', 'x-amz-signature'
        ]
