import fnmatch
import urllib.parse

import requests

from .. import web
from ..print_api import print_api


class MoreThanOneReleaseFoundError(Exception):
    pass


class NoReleaseFoundError(Exception):
    pass


class GitHubWrapper:
    def __init__(
            self,
            user_name: str = None,
            repo_name: str = None,
            repo_url: str = None,
            branch: str = 'main',
            pat: str = None,
            timeout: int = 30
    ):
        """
        This class is a wrapper for GitHub repositories: latest release assets and raw files of a branch or tag.

        :param user_name: str, the user-name of the repository.
             https://github.com/{user_name}/{repo_name}
        :param repo_name: str, the repository name.
        :param repo_url: str, the repository url. The user_name and repo_name are extracted from it.
        :param branch: str, the branch or tag name that raw files are fetched from.
        :param pat: str, the personal access token to the repo. Raises the API rate limit.
        :param timeout: int, seconds to wait for the API.

        ================================================================================================================
        Usage to download the latest release asset where the file name is 'npiperelay_windows_amd64.zip':
            git_wrapper = GitHubWrapper(user_name='jstarks', repo_name='npiperelay')
            git_wrapper.download_latest_release(
                target_directory='target_directory', asset_pattern='*npiperelay_windows_amd64.zip')
        ================================================================================================================
        Usage to download single file of the latest release tag:
            git_wrapper = GitHubWrapper(repo_url='https://github.com/sakai135/wsl-vpnkit')
            git_wrapper.branch = git_wrapper.get_latest_release_version()
            git_wrapper.download_raw_file(file_path='wsl-vpnkit', target_directory='target_directory')
        """

        self.user_name: str = user_name
        self.repo_name: str = repo_name
        self.repo_url: str = repo_url
        self.branch: str = branch
        self.pat: str = pat
        self.timeout: int = timeout

        self.domain: str = 'github.com'

        self.api_url: str = str()
        self.latest_release_json_url: str = str()

        if self.user_name and self.repo_name and not self.repo_url:
            self.build_links_from_user_and_repo()

        if self.repo_url and not self.user_name and not self.repo_name:
            self.build_links_from_repo_url()

    def _get_headers(self) -> dict:
        headers = {'Accept': 'application/vnd.github+json'}
        if self.pat:
            headers['Authorization'] = f'token {self.pat}'
        return headers

    def build_links_from_user_and_repo(self):
        if not self.user_name or not self.repo_name:
            raise ValueError("'user_name' or 'repo_name' is empty.")

        self.repo_url = f'https://{self.domain}/{self.user_name}/{self.repo_name}'
        self.api_url = f'https://api.{self.domain}/repos/{self.user_name}/{self.repo_name}'
        self.latest_release_json_url = f'{self.api_url}/releases/latest'

    def build_links_from_repo_url(self):
        if not self.repo_url:
            raise ValueError("'repo_url' is empty.")

        repo_url_parsed = urllib.parse.urlparse(self.repo_url)
        if self.domain not in repo_url_parsed.netloc:
            raise ValueError(f'This is not [{self.domain}] domain: {self.repo_url}')

        directories: list = [part for part in repo_url_parsed.path.split('/') if part]
        if len(directories) < 2:
            raise ValueError(f"Repository url doesn't contain user and repo: {self.repo_url}")

        self.user_name = directories[0]
        self.repo_name = directories[1].removesuffix('.git')
        self.repo_url = None
        self.build_links_from_user_and_repo()

    def get_latest_release_json(self) -> dict:
        """
        This function will get the latest release json.
        :return: dict, the latest release json.
        """

        response = requests.get(self.latest_release_json_url, headers=self._get_headers(), timeout=self.timeout)
        if response.status_code == 404:
            raise NoReleaseFoundError(f'No releases in repository: {self.repo_url}')
        response.raise_for_status()
        return response.json()

    def get_latest_release_version(self) -> str:
        """
        :return: str, tag name of the latest release.
        """

        return self.get_latest_release_json()['tag_name']

    def get_latest_release_url(
            self,
            asset_pattern: str,
            exclude_string: str = None
    ) -> str:
        """
        This function will return the latest release url.
        :param asset_pattern: str, the string pattern to search in the latest release. Wildcards can be used.
        :param exclude_string: str, the string to exclude from the search. No wildcards can be used.
        :return: str, the latest release url.
        """

        download_urls: list = [
            single_dict['browser_download_url'] for single_dict in self.get_latest_release_json()['assets']]

        if exclude_string:
            download_urls = [download_url for download_url in download_urls if exclude_string not in download_url]

        found_urls: list = fnmatch.filter(download_urls, asset_pattern)

        # If more than 1 url answer the criteria, the pattern must be more specific.
        if len(found_urls) > 1:
            message = f'More than 1 result found in JSON response, try changing search string or extension.\n' \
                      f'{found_urls}'
            raise MoreThanOneReleaseFoundError(message)
        elif len(found_urls) == 0:
            message = f'No result found in JSON response for [{asset_pattern}].'
            raise NoReleaseFoundError(message)
        else:
            return found_urls[0]

    def download_latest_release(
            self,
            target_directory: str,
            asset_pattern: str,
            exclude_string: str = None,
            **kwargs
    ) -> str | None:
        """
        This function will download the latest release asset from the GitHub repository.
        :param target_directory: str, the target directory to download the file.
        :param asset_pattern: str, the string pattern to search in the latest release. Wildcards can be used.
        :param exclude_string: str, the string to exclude from the search. No wildcards can be used.
        :param kwargs: dict, the print arguments for the 'print_api' function.
        :return: str, path of the downloaded file.
        """

        found_url = self.get_latest_release_url(asset_pattern=asset_pattern, exclude_string=exclude_string)
        print_api(f'Latest release asset: {found_url}', **kwargs)
        return web.download(file_url=found_url, target_directory=target_directory, **kwargs)

    def get_raw_file_url(self, file_path: str) -> str:
        file_path = file_path.replace('\\', '/').strip('/')
        return f'https://raw.githubusercontent.com/{self.user_name}/{self.repo_name}/{self.branch}/{file_path}'

    def download_raw_file(
            self,
            file_path: str,
            target_directory: str,
            file_name: str = None,
            **kwargs
    ) -> str | None:
        """
        Download single file of the 'branch' (or tag).

        :param file_path: str, repo-relative path of the file.
        :param target_directory: str, local directory to save into.
        :param file_name: str, local file name. Default is the last part of 'file_path'.
        :param kwargs: dict, the print arguments for the 'print_api' function.
        :return: str, path of the downloaded file.
        """

        return web.download(
            file_url=self.get_raw_file_url(file_path), target_directory=target_directory, file_name=file_name,
            **kwargs)
