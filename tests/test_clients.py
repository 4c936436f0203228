"""HTTP-level tests for the gateway client, providers and image host uploader."""

import json

import httpx
import pytest

from src.detection.gateway_client import GatewayBackend, GatewayClient, GatewayError
from src.detection.image_source import ImageSource, MissingInputError
from src.detection.orchestrator import DetectionOrchestrator
from src.gateway.app.providers import ClarifaiProvider, ProviderError, SerpApiProvider
from src.search.uploader import ImageHostUploader, UploadError

IMAGE_URL = "https://example.com/photo.jpg"

CLARIFAI_OK = {
    "status": {"code": 10000, "description": "Ok"},
    "outputs": [{
        "data": {
            "regions": [
                {
                    "region_info": {"bounding_box": {"top_row": 0.1, "left_col": 0.2, "bottom_row": 0.5, "right_col": 0.6}},
                    "data": {"concepts": [{"name": "Bicycle", "value": 0.93}]},
                },
                {"region_info": {"bounding_box": {"top_row": 0.3}}},
            ]
        }
    }],
}


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response):
        self.response = response
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.response

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)


class TestClarifaiProvider:
    @pytest.mark.asyncio
    async def test_remote_url_request_shape(self):
        recorder = Recorder(httpx.Response(200, json=CLARIFAI_OK))
        provider = ClarifaiProvider(pat="test-pat", transport=httpx.MockTransport(recorder))

        regions = await provider.predict_objects(ImageSource.parse(IMAGE_URL))

        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Key test-pat"
        assert request.url.path.endswith("/users/clarifai/apps/main/models/general-image-detection/outputs")
        assert recorder.last_json == {"inputs": [{"data": {"image": {"url": IMAGE_URL}}}]}
        assert len(regions) == 2
        assert regions[0].top_concept.name == "Bicycle"
        assert regions[1].box.left_col == 0

    @pytest.mark.asyncio
    async def test_embedded_payload_request_shape(self):
        recorder = Recorder(httpx.Response(200, json=CLARIFAI_OK))
        provider = ClarifaiProvider(pat="test-pat", transport=httpx.MockTransport(recorder))

        await provider.predict_faces(ImageSource.parse("data:image/png;base64,aGVsbG8="))

        [item] = recorder.last_json["inputs"]
        assert item["data"] == {"image": {"base64": "aGVsbG8="}}
        assert item["id"].startswith("face-")
        assert "/models/face-detection/outputs" in recorder.requests[0].url.path

    @pytest.mark.asyncio
    async def test_non_success_status(self):
        body = {"status": {"code": 11006, "description": "Invalid model"}}
        provider = ClarifaiProvider(pat="p", transport=httpx.MockTransport(Recorder(httpx.Response(200, json=body))))

        with pytest.raises(ProviderError, match="Invalid model"):
            await provider.predict_faces(ImageSource.parse(IMAGE_URL))

    @pytest.mark.asyncio
    async def test_http_error(self):
        provider = ClarifaiProvider(pat="p", transport=httpx.MockTransport(Recorder(httpx.Response(401))))

        with pytest.raises(ProviderError):
            await provider.predict_objects(ImageSource.parse(IMAGE_URL))

    @pytest.mark.asyncio
    async def test_no_outputs(self):
        body = {"status": {"code": 10000}, "outputs": []}
        provider = ClarifaiProvider(pat="p", transport=httpx.MockTransport(Recorder(httpx.Response(200, json=body))))

        assert await provider.predict_objects(ImageSource.parse(IMAGE_URL)) == []

    @pytest.mark.asyncio
    async def test_malformed_embedded_payload(self):
        provider = ClarifaiProvider(pat="p", transport=httpx.MockTransport(Recorder(httpx.Response(200, json=CLARIFAI_OK))))

        with pytest.raises(ProviderError):
            await provider.predict_faces(ImageSource.parse("data:image/png;base64,not base64!"))


class TestSerpApiProvider:
    @pytest.mark.asyncio
    async def test_reverse_search_params(self):
        recorder = Recorder(httpx.Response(200, json={"visual_matches": []}))
        provider = SerpApiProvider(api_key="serp", transport=httpx.MockTransport(recorder))

        await provider.reverse_search(IMAGE_URL)

        params = recorder.requests[0].url.params
        assert params["engine"] == "google_lens"
        assert params["url"] == IMAGE_URL
        assert params["api_key"] == "serp"

    @pytest.mark.asyncio
    async def test_text_search_params(self):
        recorder = Recorder(httpx.Response(200, json={"images_results": []}))
        provider = SerpApiProvider(api_key="serp", transport=httpx.MockTransport(recorder))

        await provider.text_search("Bicycle")

        params = recorder.requests[0].url.params
        assert params["engine"] == "google"
        assert params["q"] == "Bicycle"
        assert params["tbm"] == "isch"

    @pytest.mark.asyncio
    async def test_failure(self):
        provider = SerpApiProvider(api_key="serp", transport=httpx.MockTransport(Recorder(httpx.Response(500))))

        with pytest.raises(ProviderError, match="search failed"):
            await provider.text_search("Bicycle")


class TestGatewayClient:
    @pytest.mark.asyncio
    async def test_combined_detect(self):
        recorder = Recorder(httpx.Response(200, json={
            "faces": [{"top_row": 0.1, "left_col": 0.2, "bottom_row": 0.1, "right_col": 0.2}],
            "objects": [{"name": "Cup", "confidence": 0.9, "top_row": 0.1, "left_col": 0.1, "bottom_row": 0.3, "right_col": 0.3}],
        }))
        client = GatewayClient(base_url="http://gateway/", transport=httpx.MockTransport(recorder))

        result = await client.combined_detect(ImageSource.parse(IMAGE_URL))

        assert str(recorder.requests[0].url) == "http://gateway/api/combined-detect"
        assert recorder.last_json == {"image_url": IMAGE_URL}
        assert result.faces_detected == 1
        assert result.objects[0].name == "Cup"

    @pytest.mark.asyncio
    async def test_backend_uses_combined_route_for_both(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={
                "faces": [{"top_row": 0.1}],
                "boxes": [{"top_row": 0.1}],
                "objects": [{"name": "Cup", "confidence": 0.9}],
            })

        client = GatewayClient(base_url="http://gateway", transport=httpx.MockTransport(handler))

        result = await DetectionOrchestrator(GatewayBackend(client)).detect("both", IMAGE_URL)

        assert paths == ["/api/combined-detect"]
        assert result.faces_detected == 1
        assert result.faces[0].left_col == 0
        assert result.objects[0].name == "Cup"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode,path", [("faces", "/api/face-detect"), ("objects", "/api/object-detect")])
    async def test_backend_uses_per_kind_routes(self, mode, path):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"boxes": [], "objects": []})

        client = GatewayClient(base_url="http://gateway", transport=httpx.MockTransport(handler))

        await DetectionOrchestrator(GatewayBackend(client)).detect(mode, IMAGE_URL)

        assert paths == [path]

    @pytest.mark.asyncio
    async def test_error_status_becomes_gateway_error(self):
        recorder = Recorder(httpx.Response(400, json={"detail": "image_url required"}))
        client = GatewayClient(base_url="http://gateway", transport=httpx.MockTransport(recorder))

        with pytest.raises(GatewayError) as exc_info:
            await client.face_detect(ImageSource.parse(IMAGE_URL))

        assert exc_info.value.status_code == 400
        assert "image_url required" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_search_payload(self):
        recorder = Recorder(httpx.Response(200, json={"results": {"visual_matches": [{"title": "x"}]}}))
        client = GatewayClient(base_url="http://gateway", transport=httpx.MockTransport(recorder))

        results = await client.search_image(image_url=IMAGE_URL)

        assert recorder.last_json == {"imageUrl": IMAGE_URL, "query": None}
        assert results["visual_matches"][0]["title"] == "x"

    @pytest.mark.asyncio
    async def test_search_requires_input(self):
        client = GatewayClient(base_url="http://gateway")

        with pytest.raises(MissingInputError):
            await client.search_image()

    @pytest.mark.asyncio
    async def test_increment_entries(self):
        recorder = Recorder(httpx.Response(200, json=5))
        client = GatewayClient(base_url="http://gateway", transport=httpx.MockTransport(recorder))

        assert await client.increment_entries(9) == 5
        assert recorder.requests[0].method == "PUT"
        assert recorder.last_json == {"id": 9}


class TestImageHostUploader:
    @pytest.mark.asyncio
    async def test_upload_returns_url(self):
        recorder = Recorder(httpx.Response(200, json={"success": True, "data": {"url": "https://i.ibb.co/x.jpg"}}))
        uploader = ImageHostUploader(api_key="k", transport=httpx.MockTransport(recorder))

        url = await uploader.upload_base64("aGVsbG8=")

        request = recorder.requests[0]
        assert url == "https://i.ibb.co/x.jpg"
        assert request.url.params["key"] == "k"
        assert b'name="image"' in request.content
        assert b"aGVsbG8=" in request.content

    @pytest.mark.asyncio
    async def test_reported_failure(self):
        recorder = Recorder(httpx.Response(200, json={"success": False}))
        uploader = ImageHostUploader(api_key="k", transport=httpx.MockTransport(recorder))

        with pytest.raises(UploadError):
            await uploader.upload_bytes(b"hello")

    @pytest.mark.asyncio
    async def test_not_configured(self, monkeypatch):
        uploader = ImageHostUploader(api_key="k")
        monkeypatch.setattr(uploader, "api_key", None)

        assert not uploader.configured
        with pytest.raises(UploadError):
            await uploader.upload_base64("aGVsbG8=")

