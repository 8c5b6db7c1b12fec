"""
Upload an attachment
"""
import asyncio
from attachkit import AttachmentClient, ServiceConfig, AttachmentUploadError, CancellationToken


async def main():
    config = ServiceConfig.from_env()
    
    async with AttachmentClient(config) as client:
        
        # Resumable upload (v3)
        result = await client.upload("photo.jpg")
        print(f"Uploaded to CDN {result.cdn_number}: {result.cdn_key}")
        
        # Direct upload (v2)
        result = await client.upload("document.pdf", use_v3=False)
        print(f"Uploaded {result.object_key} (id {result.server_id})")
        
        # Progress callback receives the fraction of the current attempt
        def on_progress(fraction):
            print(f"Progress: {fraction * 100:.1f}%")
        
        await client.upload("video.mp4", progress=on_progress)
        
        # Cancellation and error handling
        token = CancellationToken()
        try:
            await client.upload("large_file.zip", token=token)
        except AttachmentUploadError as e:
            if e.retryable:
                print(f"Network trouble, retry later: {e}")
            else:
                print(f"Upload failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
