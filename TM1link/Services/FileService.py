# -*- coding: utf-8 -*-
import json
from io import BytesIO
from typing import List, Union

from requests import Response

from TM1link.Services.ObjectService import ObjectService
from TM1link.Services.RestService import RestService
from TM1link.Utils import format_url, require_version_gate, verify_version


class FileService(ObjectService):
    """ Files in the file store of the database

    Files live in Contents('Files') from v12 onwards and in Contents('Blobs') below

    """

    def __init__(self, rest: RestService):
        super().__init__(rest)

    @property
    def version_content_path(self) -> str:
        return "Files" if verify_version(required_version="12", version=self.version) else "Blobs"

    def _content_url(self, file_name: str = None, extension: str = "") -> str:
        if file_name is None:
            url = format_url("/Contents('{}')", self.version_content_path)
        else:
            url = format_url("/Contents('{}')/Contents('{}')", self.version_content_path, file_name)
        return url + ("/" + extension if extension else "")

    @require_version_gate("file_service")
    def get_all_names(self, **kwargs) -> List[str]:
        """ return list of file names in the root of the file store """
        url = self._content_url(extension="Contents?$select=Name")
        response = self._rest.GET(url, **kwargs)
        return [file['Name'] for file in response.json()['value']]

    @require_version_gate("file_service")
    def get(self, file_name: str, **kwargs) -> bytes:
        """ Get file content

        :param file_name: file name in root
        """
        url = self._content_url(file_name, extension="Content")
        return self._rest.GET(url, **kwargs).content

    @require_version_gate("file_service")
    def create(self, file_name: str, file_content: Union[bytes, BytesIO], **kwargs) -> Response:
        """ Create file: register the document, then upload its content

        :param file_name: file name in root
        :param file_content: file_content as bytes or BytesIO
        """
        body = {
            "@odata.type": "#ibm.tm1.api.v1.Document",
            "ID": file_name,
            "Name": file_name}
        self._rest.POST(self._content_url(extension="Contents"), json.dumps(body, ensure_ascii=False), **kwargs)
        return self._upload_file_content(file_name, file_content, **kwargs)

    @require_version_gate("file_service")
    def update(self, file_name: str, file_content: Union[bytes, BytesIO], **kwargs) -> Response:
        """ Update existing file

        :param file_name: file name in root
        :param file_content: file_content as bytes or BytesIO
        """
        return self._upload_file_content(file_name, file_content, **kwargs)

    @require_version_gate("file_service")
    def update_or_create(self, file_name: str, file_content: Union[bytes, BytesIO], **kwargs) -> Response:
        if self.exists(file_name, **kwargs):
            return self.update(file_name, file_content, **kwargs)
        return self.create(file_name, file_content, **kwargs)

    @require_version_gate("file_service")
    def exists(self, file_name: str, **kwargs) -> bool:
        """ Check if file exists

        :param file_name: file name in root
        """
        return self._exists(self._content_url(file_name), **kwargs)

    @require_version_gate("file_service")
    def delete(self, file_name: str, **kwargs) -> Response:
        """ Delete file

        :param file_name: file name in root
        """
        return self._rest.DELETE(self._content_url(file_name), **kwargs)

    def _upload_file_content(self, file_name: str, file_content: Union[bytes, BytesIO], **kwargs) -> Response:
        if isinstance(file_content, BytesIO):
            file_content = file_content.getvalue()
        return self._rest.PUT(
            url=self._content_url(file_name, extension="Content"),
            data=file_content,
            headers=self.binary_http_header,
            **kwargs)
